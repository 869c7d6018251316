"""Rule file parser – turns one Markdown reference file into a ``Rule``."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from skillsbuild.core.frontmatter import as_list, as_text, flatten_metadata, split_frontmatter
from skillsbuild.core.models import CodeExample, ImpactLevel, ParseResult, Rule

__all__ = ["RuleParser", "parse_rule_file", "parse_rule_text", "section_prefix", "parse_version_requirement"]

logger = logging.getLogger(__name__)

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$")
_FENCE_OPEN_RE = re.compile(r"^\s*(`{3,}|~{3,})\s*([^\s`]*)")
_BOLD_KEY_RE = re.compile(r"^\*\*(?P<key>[A-Za-z][\w ]*?)\s*:\*\*\s*(?P<value>.*)$")
_BOLD_WHOLE_RE = re.compile(r"^\*\*(?P<key>[A-Za-z][\w ]*?)\s*:\s*(?P<value>[^*]+?)\s*\*\*\s*$")
_PLAIN_KEY_RE = re.compile(r"^(?P<key>[A-Za-z][\w ]*?)\s*:\s*(?P<value>.*)$")
_LABEL_RE = re.compile(r"^\*\*(?P<text>[^*]+?)\*\*\s*:?\s*$")
_PAREN_RE = re.compile(r"^(?P<label>.+?)\s*\((?P<desc>.*)\)\s*$")
_IMPACT_VALUE_RE = re.compile(r"^(?P<level>[A-Za-z]+(?:-[A-Za-z]+)?)\s*(?:\((?P<desc>.*)\))?\s*$")
_VERSION_RE = re.compile(r"^(?:postgres(?:ql)?\s*)?v?(?P<version>\d+(?:\.\d+)*)\s*\+?\s*(?:or\s+(?:later|newer|higher))?$", re.IGNORECASE)
_LIST_ITEM_RE = re.compile(r"^\s*(?:[-*+]|\d+\.)\s+(?P<item>.+)$")
_LINK_RE = re.compile(r"\[[^\]]*\]\((?P<url>[^)\s]+)(?:\s+\"[^\"]*\")?\)")
_URL_RE = re.compile(r"<?(?P<url>https?://[^\s<>)\]]+)>?")

_ANNOTATION_KEYS = {
    "impact": "impact",
    "requires": "requires",
    "min version": "requires",
    "minimum version": "requires",
    "extensions": "extensions",
    "extension": "extensions",
    "tags": "tags",
    "reference": "references",
    "references": "references",
}


@dataclass
class _ExampleDraft:
    label: str
    description: str | None
    language: str | None
    code: str
    trailing: list[str] = field(default_factory=list)

    def build(self) -> CodeExample:
        extra = _join_prose(self.trailing)
        return CodeExample(
            label=self.label, code=self.code, description=self.description,
            language=self.language, additional_text=extra or None,
        )


@dataclass
class _BodyState:
    title: str | None = None
    explanation: list[str] = field(default_factory=list)
    examples: list[_ExampleDraft] = field(default_factory=list)
    annotations: dict[str, str] = field(default_factory=dict)
    references: list[str] = field(default_factory=list)
    pending_label: tuple[str, str | None] | None = None
    pending_lines: list[str] = field(default_factory=list)

    @property
    def prose(self) -> list[str]:
        return self.examples[-1].trailing if self.examples else self.explanation

    def flush_pending(self) -> None:
        """Drop an unused label; its prose falls back to the current prose target."""
        if self.pending_lines:
            self.prose.extend(self.pending_lines)
        self.pending_label = None
        self.pending_lines = []


def section_prefix(file_path: Path | str) -> str:
    """Section prefix of a reference file: the stem up to the first ``-``."""
    return Path(file_path).stem.split("-", 1)[0]


def parse_version_requirement(value: Any) -> str | None:
    """Extract a dotted numeric version from ``"PostgreSQL 11+"``, ``14.2`` or ``"15"``."""
    text = as_text(value)
    match = _VERSION_RE.match(text)
    return match.group("version") if match else None


class RuleParser:
    """Parses reference files against an explicit prefix → section-number map."""

    def __init__(self, section_map: dict[str, int]) -> None:
        self.section_map = dict(section_map)

    def parse_file(self, file_path: Path | str) -> ParseResult:
        path = Path(file_path)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Unable to read rule file %s: %s", path, exc)
            return ParseResult(success=False, errors=[f"Unable to read file: {exc}"])
        return self.parse_text(content, path)

    def parse_text(self, content: str, file_path: Path | str) -> ParseResult:
        path = Path(file_path)
        errors: list[str] = []
        warnings: list[str] = []

        prefix = section_prefix(path)
        section = self.section_map.get(prefix)
        if section is None:
            errors.append(f'Unknown section prefix "{prefix}" (no matching entry in the section registry)')

        front = split_frontmatter(content)
        if front.error:
            errors.append(front.error)
        meta = flatten_metadata(front.data)

        state = self._parse_body(front.body, warnings)

        title = as_text(meta.get("title")) or state.title
        if not title:
            errors.append("Missing title (no frontmatter title or heading found)")

        if section is None or not title or errors:
            return ParseResult(success=False, errors=errors, warnings=warnings)

        impact, impact_description = self._resolve_impact(meta, state)
        min_version = self._resolve_min_version(meta, state, errors)
        extensions = as_list(meta.get("extensions")) or as_list(state.annotations.get("extensions"))
        tags = as_list(meta.get("tags")) or as_list(state.annotations.get("tags"))
        references = [url for item in as_list(meta.get("references")) for url in _extract_urls(item)]
        references += state.references

        if errors:
            return ParseResult(success=False, errors=errors, warnings=warnings)

        rule = Rule(
            title=title,
            section=section,
            impact=impact,
            explanation=_join_prose(state.explanation),
            examples=[draft.build() for draft in state.examples],
            impact_description=impact_description,
            references=references,
            tags=tags,
            min_version=min_version,
            extensions=extensions,
            file_path=path,
        )
        return ParseResult(success=True, rule=rule, errors=errors, warnings=warnings)

    def _parse_body(self, body: str, warnings: list[str]) -> _BodyState:
        state = _BodyState()
        lines = body.split("\n")
        in_references = False
        idx = 0
        while idx < len(lines):
            line = lines[idx]
            stripped = line.strip()

            fence = _FENCE_OPEN_RE.match(line)
            if fence:
                in_references = False
                idx = self._consume_fence(lines, idx, fence, state, warnings)
                continue

            if in_references:
                item = _LIST_ITEM_RE.match(line)
                if item:
                    self._add_references(item.group("item"), state, warnings)
                    idx += 1
                    continue
                if not stripped:
                    idx += 1
                    continue
                in_references = False

            heading = _HEADING_RE.match(stripped)
            if heading:
                text = heading.group(2).strip()
                if state.title is None and len(heading.group(1)) <= 2:
                    state.title = text
                else:
                    state.flush_pending()
                    state.pending_label = _split_label(text)
                idx += 1
                continue

            annotation = _annotation(stripped)
            if annotation is not None:
                key, value = annotation
                if key == "references":
                    state.flush_pending()
                    if value:
                        self._add_references(value, state, warnings)
                    in_references = True
                elif value:
                    state.annotations.setdefault(key, value)
                idx += 1
                continue

            label = _LABEL_RE.match(stripped)
            if label:
                state.flush_pending()
                state.pending_label = _split_label(label.group("text"))
                idx += 1
                continue

            if state.pending_label is not None:
                state.pending_lines.append(line)
            else:
                state.prose.append(line)
            idx += 1

        state.flush_pending()
        return state

    @staticmethod
    def _consume_fence(lines: list[str], start: int, fence: re.Match[str], state: _BodyState, warnings: list[str]) -> int:
        marker = fence.group(1)
        language = fence.group(2).strip() or None
        code: list[str] = []
        idx = start + 1
        closed = False
        while idx < len(lines):
            candidate = lines[idx].strip()
            if candidate.startswith(marker[0] * len(marker)) and not candidate.strip(marker[0]):
                closed = True
                idx += 1
                break
            code.append(lines[idx])
            idx += 1
        if not closed:
            warnings.append(f"Unterminated code block starting at body line {start + 1}")

        if state.pending_label is not None:
            label, description = state.pending_label
            intro = _join_prose(state.pending_lines)
            if intro and not description:
                description = intro
            elif intro:
                state.prose.extend(state.pending_lines)
        else:
            label, description = "", None
            warnings.append(f"Code block at body line {start + 1} has no preceding label")
        state.pending_label = None
        state.pending_lines = []
        state.examples.append(_ExampleDraft(label=label, description=description, language=language, code="\n".join(code).strip("\n")))
        return idx

    @staticmethod
    def _add_references(text: str, state: _BodyState, warnings: list[str]) -> None:
        urls = _extract_urls(text)
        if not urls:
            warnings.append(f'Reference without a URL: "{text.strip()}"')
        state.references.extend(urls)

    @staticmethod
    def _resolve_impact(meta: dict[str, Any], state: _BodyState) -> tuple[str, str | None]:
        impact = as_text(meta.get("impact"))
        description = as_text(meta.get("impactDescription") or meta.get("impact_description")) or None
        if impact:
            match = _IMPACT_VALUE_RE.match(impact)
            if match and match.group("desc") is not None:
                impact = match.group("level")
                description = description or match.group("desc").strip() or None
            return impact, description

        raw = state.annotations.get("impact", "")
        match = _IMPACT_VALUE_RE.match(raw)
        if not match:
            return raw, description
        body_desc = (match.group("desc") or "").strip() or None
        return match.group("level"), description or body_desc

    @staticmethod
    def _resolve_min_version(meta: dict[str, Any], state: _BodyState, errors: list[str]) -> str | None:
        raw = meta.get("minVersion", meta.get("min_version"))
        if raw is None or as_text(raw) == "":
            raw = state.annotations.get("requires")
        if raw is None or as_text(raw) == "":
            return None
        # YAML reads `14.10` as the float 14.1; the trailing zero is already gone
        if isinstance(raw, float):
            errors.append(f'Ambiguous minimum version {raw!r}: quote it in frontmatter (e.g. minVersion: "14.10")')
            return None
        version = parse_version_requirement(raw)
        if version is None:
            errors.append(f'Invalid minimum version requirement: "{as_text(raw)}"')
        return version


def _annotation(line: str) -> tuple[str, str] | None:
    for regex, bold in ((_BOLD_KEY_RE, True), (_BOLD_WHOLE_RE, True), (_PLAIN_KEY_RE, False)):
        match = regex.match(line)
        if not match:
            continue
        key = _ANNOTATION_KEYS.get(match.group("key").strip().lower())
        if key is None:
            continue
        value = match.group("value").strip().rstrip("*").strip()
        # unbolded prose only counts for reference lists and well-formed impact lines
        if not bold and not (key == "references" or (key == "impact" and _is_impact_line(value))):
            continue
        return key, value
    return None


def _extract_urls(text: str) -> list[str]:
    """Markdown link targets, falling back to bare URLs."""
    urls = [m.group("url") for m in _LINK_RE.finditer(text)]
    return urls or [m.group("url") for m in _URL_RE.finditer(text)]


def _is_impact_line(value: str) -> bool:
    match = _IMPACT_VALUE_RE.match(value)
    return bool(match) and ImpactLevel.is_valid(match.group("level"))


def _split_label(text: str) -> tuple[str, str | None]:
    text = text.strip().rstrip(":").strip()
    match = _PAREN_RE.match(text)
    if match:
        return match.group("label").strip(), match.group("desc").strip() or None
    return text, None


def _join_prose(lines: list[str]) -> str:
    text = "\n".join(lines).strip()
    return re.sub(r"\n{3,}", "\n\n", text)


def parse_rule_text(content: str, file_path: Path | str, section_map: dict[str, int]) -> ParseResult:
    return RuleParser(section_map).parse_text(content, file_path)


def parse_rule_file(file_path: Path | str, section_map: dict[str, int]) -> ParseResult:
    return RuleParser(section_map).parse_file(file_path)
