"""Pydantic-based configuration model, YAML loader, and skill discovery."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from skillsbuild.core.validator import DEFAULT_BAD_KEYWORDS, DEFAULT_GOOD_KEYWORDS, LabelClassifier

__all__ = [
    "ValidationConfig",
    "SkillsBuildSettings",
    "SkillPaths",
    "SkillNotFoundError",
    "load_settings",
    "discover_skills",
    "resolve_skill",
]

_CONFIG_FILE_NAMES: list[str] = [
    "skillsbuild.yaml",
    "skillsbuild.yml",
    ".skillsbuild.yaml",
    ".skillsbuild.yml",
]


class ValidationConfig(BaseModel):
    """Tunables for rule validation."""

    min_explanation_length: int = Field(
        default=50,
        description="Explanations shorter than this produce a warning.",
    )
    bad_label_keywords: list[str] = Field(
        default_factory=lambda: list(DEFAULT_BAD_KEYWORDS),
        description="Substrings marking an example label as the bad pattern.",
    )
    good_label_keywords: list[str] = Field(
        default_factory=lambda: list(DEFAULT_GOOD_KEYWORDS),
        description="Substrings marking an example label as the recommended pattern.",
    )

    def classifier(self) -> LabelClassifier:
        return LabelClassifier(
            bad_keywords=tuple(self.bad_label_keywords),
            good_keywords=tuple(self.good_label_keywords),
        )


class SkillsBuildSettings(BaseModel):
    """Top-level skillsbuild configuration."""

    skills_dir: str = Field(
        default="skills",
        description="Directory (relative to the project root) holding one folder per skill.",
    )
    references_dir: str = Field(
        default="references",
        description="Per-skill directory of rule reference files.",
    )
    profiles_dir: str = Field(
        default="profiles",
        description="Per-skill directory of deployment profile documents.",
    )
    sections_file: str = Field(
        default="_sections.md",
        description="Section registry file inside the references directory.",
    )
    output_file: str = Field(
        default="AGENTS.md",
        description="Compiled document written into the skill directory.",
    )
    symlink_file: str = Field(
        default="CLAUDE.md",
        description="Symlink created next to the compiled document.",
    )
    metadata_file: str = Field(
        default="metadata.json",
        description="Optional document metadata inside the skill directory.",
    )
    create_symlink: bool = Field(
        default=True,
        description="Create the symlink after an unfiltered build.",
    )
    validation: ValidationConfig = Field(
        default_factory=ValidationConfig,
        description="Rule validation configuration.",
    )


class SkillNotFoundError(Exception):
    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = available
        super().__init__(f'Skill "{name}" not found')


@dataclass(frozen=True)
class SkillPaths:
    """Resolved filesystem locations for one skill."""

    name: str
    skill_dir: Path
    skill_file: Path
    references_dir: Path
    profiles_dir: Path
    sections_file: Path
    agents_output: Path
    claude_symlink: Path
    metadata_file: Path

    @classmethod
    def for_skill(cls, skill_dir: Path, settings: SkillsBuildSettings) -> SkillPaths:
        references = skill_dir / settings.references_dir
        return cls(
            name=skill_dir.name,
            skill_dir=skill_dir,
            skill_file=skill_dir / "SKILL.md",
            references_dir=references,
            profiles_dir=skill_dir / settings.profiles_dir,
            sections_file=references / settings.sections_file,
            agents_output=skill_dir / settings.output_file,
            claude_symlink=skill_dir / settings.symlink_file,
            metadata_file=skill_dir / settings.metadata_file,
        )

    def profile_output(self, profile_name: str) -> Path:
        """``AGENTS.md`` → ``AGENTS.<profile>.md``."""
        return self.agents_output.with_name(f"{self.agents_output.stem}.{profile_name}{self.agents_output.suffix}")


def _find_config_file(search_dir: Path) -> Path | None:
    """Walk up from *search_dir* looking for a config file."""
    current = search_dir.resolve()
    while True:
        for name in _CONFIG_FILE_NAMES:
            candidate = current / name
            if candidate.is_file():
                return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def load_settings(
    config_path: Path | None = None,
    search_dir: Path | None = None,
) -> SkillsBuildSettings:
    """Load settings from a YAML file, falling back to defaults."""
    raw: dict[str, Any] = {}

    if config_path is not None:
        resolved = Path(config_path).resolve()
        if resolved.is_file():
            raw = yaml.safe_load(resolved.read_text(encoding="utf-8")) or {}
    else:
        found = _find_config_file(search_dir or Path.cwd())
        if found is not None:
            raw = yaml.safe_load(found.read_text(encoding="utf-8")) or {}

    return SkillsBuildSettings(**raw)


def discover_skills(root_dir: Path, settings: SkillsBuildSettings) -> list[str]:
    """Names of skill directories that contain a ``SKILL.md``, sorted."""
    skills_root = Path(root_dir) / settings.skills_dir
    if not skills_root.is_dir():
        return []
    return sorted(d.name for d in skills_root.iterdir() if d.is_dir() and (d / "SKILL.md").is_file())


def resolve_skill(root_dir: Path, settings: SkillsBuildSettings, name: str) -> SkillPaths:
    available = discover_skills(root_dir, settings)
    if name not in available:
        raise SkillNotFoundError(name, available)
    return SkillPaths.for_skill(Path(root_dir) / settings.skills_dir / name, settings)
