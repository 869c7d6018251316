"""Typed model for sections, rules, and parse/validation outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

__all__ = [
    "ImpactLevel",
    "IMPACT_LEVELS",
    "Section",
    "CodeExample",
    "Rule",
    "ParseResult",
    "ValidationResult",
    "SkillMetadata",
]


class ImpactLevel(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM_HIGH = "MEDIUM-HIGH"
    MEDIUM = "MEDIUM"
    LOW_MEDIUM = "LOW-MEDIUM"
    LOW = "LOW"

    @classmethod
    def is_valid(cls, value: str | None) -> bool:
        return value in IMPACT_LEVELS

    @classmethod
    def rank(cls, value: str | None) -> int:
        """Position in priority order; unknown values sort after ``LOW``."""
        try:
            return IMPACT_LEVELS.index(value)  # type: ignore[arg-type]
        except ValueError:
            return len(IMPACT_LEVELS)


IMPACT_LEVELS: tuple[str, ...] = tuple(level.value for level in ImpactLevel)


@dataclass(frozen=True)
class Section:
    """One category from the section registry."""

    number: int
    title: str
    prefix: str
    impact: str
    description: str


@dataclass(frozen=True)
class CodeExample:
    label: str
    code: str
    description: str | None = None
    language: str | None = None
    additional_text: str | None = None


@dataclass(frozen=True)
class Rule:
    """A single best-practice entry parsed from one reference file."""

    title: str
    section: int
    impact: str
    explanation: str
    examples: list[CodeExample] = field(default_factory=list)
    impact_description: str | None = None
    references: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    min_version: str | None = None
    extensions: list[str] = field(default_factory=list)
    id: str = ""
    file_path: Path | None = None


@dataclass
class ParseResult:
    success: bool
    rule: Rule | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    rule: Rule | None = None

    @property
    def valid(self) -> bool:
        return not self.errors


class SkillMetadata(BaseModel):
    """Optional ``metadata.json`` shipped next to a skill's ``SKILL.md``."""

    version: str = Field(default="", description="Document version.")
    organization: str = Field(default="", description="Publishing organization.")
    date: str = Field(default="", description="Publication date.")
    abstract: str = Field(default="", description="Abstract rendered below the title.")
    references: list[str] = Field(default_factory=list, description="Document-level references.")
    maintainers: list[str] = Field(default_factory=list, description="Maintainer handles.")
