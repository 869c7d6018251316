"""Markdown rendering of the compiled AGENTS.md document."""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from skillsbuild.core.frontmatter import split_frontmatter
from skillsbuild.core.models import Rule, Section, SkillMetadata

if TYPE_CHECKING:
    from skillsbuild.core.profiles import Profile

__all__ = [
    "render_agents_md",
    "read_skill_file",
    "skill_name_to_title",
    "load_metadata",
    "create_symlink",
    "anchor",
]

logger = logging.getLogger(__name__)

_H1_RE = re.compile(r"^#\s+(.+?)\s*$")


def skill_name_to_title(name: str) -> str:
    """``postgres-best-practices`` → ``Postgres Best Practices``."""
    return " ".join(word[:1].upper() + word[1:] for word in name.split("-") if word)


def read_skill_file(skill_file: Path, skill_name: str) -> tuple[str, str]:
    """Return the document title and overview text from ``SKILL.md``.

    The title comes from an H1 on the first body line; without one the
    title-cased skill name is used and the whole body is the overview.
    """
    if not skill_file.is_file():
        return skill_name_to_title(skill_name), ""
    body = split_frontmatter(skill_file.read_text(encoding="utf-8")).body.strip()
    lines = body.split("\n")
    match = _H1_RE.match(lines[0].strip()) if lines else None
    if not match:
        return skill_name_to_title(skill_name), body
    return match.group(1), "\n".join(lines[1:]).strip()


def load_metadata(metadata_file: Path) -> SkillMetadata | None:
    if not metadata_file.is_file():
        return None
    try:
        return SkillMetadata.model_validate(json.loads(metadata_file.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValidationError):
        logger.warning("Ignoring unreadable metadata: %s", metadata_file, exc_info=True)
        return None


def anchor(text: str) -> str:
    slug = re.sub(r"[^\w\s-]", "", text.lower()).strip()
    return re.sub(r"[\s]+", "-", slug)


def render_agents_md(
    title: str,
    sections: list[Section],
    rules: list[Rule],
    metadata: SkillMetadata | None = None,
    profile: Profile | None = None,
    overview: str = "",
) -> str:
    by_section: dict[int, list[Rule]] = {}
    for rule in rules:
        by_section.setdefault(rule.section, []).append(rule)
    populated = [s for s in sorted(sections, key=lambda s: s.number) if by_section.get(s.number)]

    out: list[str] = [f"# {title}", ""]
    if metadata and metadata.version:
        out += [f"**Version {metadata.version}**"]
        if metadata.organization:
            out += [metadata.organization]
        if metadata.date:
            out += [metadata.date]
        out += [""]

    if profile is not None:
        out += [f"> **Profile:** {profile.name} (PostgreSQL {_version_range(profile)})"]
        if profile.notes:
            out += [f"> {profile.notes}"]
        out += [""]

    if metadata and metadata.abstract:
        out += ["## Abstract", "", metadata.abstract, ""]

    if overview:
        out += ["## Overview", "", overview, ""]

    if populated:
        out += ["## Table of Contents", ""]
        for section in populated:
            heading = f"{section.number}. {section.title}"
            out += [f"{section.number}. [{section.title}](#{anchor(heading)}) - **{section.impact}**"]
            for rule in by_section[section.number]:
                out += [f"   - {rule.id} [{rule.title}](#{anchor(f'{rule.id} {rule.title}')})"]
        out += ["", "---", ""]

    for section in populated:
        out += [f"## {section.number}. {section.title}", "", f"**Impact: {section.impact}**", "", section.description, ""]
        for rule in by_section[section.number]:
            out += _render_rule(rule)

    if metadata and metadata.references:
        out += ["## References", ""]
        out += [f"{i}. {ref}" for i, ref in enumerate(metadata.references, start=1)]
        out += [""]

    return "\n".join(out).rstrip() + "\n"


def _render_rule(rule: Rule) -> list[str]:
    impact = f"**Impact: {rule.impact}"
    impact += f" ({rule.impact_description})**" if rule.impact_description else "**"
    out = [f"### {rule.id} {rule.title}", "", impact, ""]
    if rule.min_version or rule.extensions:
        requires = []
        if rule.min_version:
            requires.append(f"PostgreSQL {rule.min_version}+")
        if rule.extensions:
            requires.append("extensions: " + ", ".join(rule.extensions))
        out += [f"**Requires:** {'; '.join(requires)}", ""]
    out += [rule.explanation, ""]
    for example in rule.examples:
        label = example.label or "Example"
        if example.description:
            label += f" ({example.description})"
        out += [f"**{label}:**", "", f"```{example.language or 'sql'}", example.code, "```", ""]
        if example.additional_text:
            out += [example.additional_text, ""]
    if rule.references:
        if len(rule.references) == 1:
            out += [f"Reference: {rule.references[0]}", ""]
        else:
            out += ["References:"] + [f"- {ref}" for ref in rule.references] + [""]
    return out


def _version_range(profile: Profile) -> str:
    if profile.max_version:
        return f"{profile.min_version}-{profile.max_version}"
    return f"{profile.min_version}+"


def create_symlink(target: Path, link: Path) -> None:
    """Point *link* at *target* with a relative path, replacing any existing file."""
    if link.is_symlink() or link.is_file():
        link.unlink()
    os.symlink(os.path.relpath(target, link.parent), link)
    logger.debug("Created symlink: %s -> %s", link.name, target.name)
