"""Deployment profiles and rule compatibility filtering."""

from __future__ import annotations

import logging
import re
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from skillsbuild.core.models import Rule

__all__ = [
    "ExtensionAvailability",
    "Profile",
    "ProfileNotFoundError",
    "ProfileLoadError",
    "compare_versions",
    "is_rule_compatible",
    "filter_rules_for_profile",
    "load_profile",
    "list_profiles",
]

logger = logging.getLogger(__name__)

_PROFILE_SUFFIXES: tuple[str, ...] = (".json", ".yaml", ".yml")
_VERSION_RE = re.compile(r"^\d+(?:\.\d+)*$")


class ProfileNotFoundError(Exception):
    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = available
        super().__init__(f'Profile "{name}" not found')


class ProfileLoadError(Exception):
    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid profile {path}: {reason}")


class ExtensionAvailability(BaseModel):
    available: list[str] = Field(default_factory=list)
    installable: list[str] = Field(default_factory=list)
    unavailable: list[str] = Field(default_factory=list)

    @field_validator("available", "installable", "unavailable", mode="before")
    @classmethod
    def _null_is_empty(cls, value: object) -> object:
        return [] if value is None else value


class Profile(BaseModel):
    """A named deployment target: PostgreSQL version range plus extension availability."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    min_version: str = Field(alias="minVersion", description="Oldest PostgreSQL version the target guarantees.")
    max_version: str | None = Field(default=None, alias="maxVersion", description="Newest PostgreSQL version, inclusive.")
    extensions: ExtensionAvailability = Field(default_factory=ExtensionAvailability)
    exclude_rules: list[str] = Field(default_factory=list, alias="excludeRules", description="Rule IDs always dropped.")
    notes: str | None = None

    @field_validator("extensions", mode="before")
    @classmethod
    def _null_extensions(cls, value: object) -> object:
        return {} if value is None else value

    @field_validator("exclude_rules", mode="before")
    @classmethod
    def _null_exclude_rules(cls, value: object) -> object:
        return [] if value is None else value

    @field_validator("min_version", "max_version", mode="before")
    @classmethod
    def _dotted_version(cls, value: object) -> object:
        if value is None:
            return value
        if isinstance(value, float):
            raise ValueError(f"ambiguous version {value!r}; quote it so trailing zeros survive (e.g. \"14.10\")")
        text = str(value).strip()
        if not _VERSION_RE.match(text):
            raise ValueError(f'"{text}" is not a dotted numeric version')
        return text


def compare_versions(a: str, b: str) -> int:
    """Compare dotted numeric versions; missing trailing segments count as 0.

    Returns a negative number if ``a < b``, zero if equal, positive if ``a > b``.
    """
    parts_a = [int(p) for p in str(a).split(".")]
    parts_b = [int(p) for p in str(b).split(".")]
    length = max(len(parts_a), len(parts_b))
    parts_a += [0] * (length - len(parts_a))
    parts_b += [0] * (length - len(parts_b))
    for num_a, num_b in zip(parts_a, parts_b):
        if num_a != num_b:
            return num_a - num_b
    return 0


def is_rule_compatible(rule: Rule, profile: Profile) -> bool:
    if rule.min_version:
        if compare_versions(rule.min_version, profile.min_version) > 0:
            return False
        if profile.max_version and compare_versions(rule.min_version, profile.max_version) > 0:
            return False

    if rule.extensions:
        usable = set(profile.extensions.available) | set(profile.extensions.installable)
        unavailable = set(profile.extensions.unavailable)
        for ext in rule.extensions:
            if ext in unavailable or ext not in usable:
                return False

    return rule.id not in profile.exclude_rules


def filter_rules_for_profile(rules: list[Rule], profile: Profile) -> list[Rule]:
    """Return the rules compatible with *profile*, preserving order."""
    return [rule for rule in rules if is_rule_compatible(rule, profile)]


def list_profiles(profiles_dir: Path) -> list[str]:
    profiles_dir = Path(profiles_dir)
    if not profiles_dir.is_dir():
        return []
    return sorted({p.stem for p in profiles_dir.iterdir() if p.is_file() and p.suffix in _PROFILE_SUFFIXES})


def load_profile(profiles_dir: Path, name: str) -> Profile:
    """Load ``<name>.json`` (or ``.yaml``/``.yml``) from *profiles_dir*."""
    profiles_dir = Path(profiles_dir)
    if not name or Path(name).name != name or name.startswith("."):
        raise ProfileNotFoundError(name, list_profiles(profiles_dir))
    for suffix in _PROFILE_SUFFIXES:
        candidate = profiles_dir / f"{name}{suffix}"
        if candidate.is_file():
            return _read_profile(candidate, name)
    raise ProfileNotFoundError(name, list_profiles(profiles_dir))


def _read_profile(path: Path, name: str) -> Profile:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        logger.warning("Failed to parse profile: %s", path, exc_info=True)
        raise ProfileLoadError(path, str(exc)) from exc
    if not isinstance(raw, dict):
        raise ProfileLoadError(path, "expected a mapping at the top level")
    raw.setdefault("name", name)
    try:
        return Profile.model_validate(raw)
    except ValidationError as exc:
        raise ProfileLoadError(path, str(exc)) from exc
