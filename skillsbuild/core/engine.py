"""Orchestration engine – ties sections, parsing, validation, profiles, and rendering together."""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path

from skillsbuild.config.settings import SkillPaths, SkillsBuildSettings, discover_skills, resolve_skill
from skillsbuild.core.models import Rule, Section, ValidationResult
from skillsbuild.core.profiles import Profile, filter_rules_for_profile, list_profiles, load_profile
from skillsbuild.core.sections import build_section_map, parse_sections
from skillsbuild.core.validator import RuleValidator
from skillsbuild.render.agents_md import create_symlink, load_metadata, read_skill_file, render_agents_md

__all__ = [
    "SkillsBuildEngine",
    "FileReport",
    "ValidateReport",
    "BuildResult",
    "get_reference_files",
    "assign_rule_ids",
]

logger = logging.getLogger(__name__)


class FileReport:
    def __init__(self, file_path: Path, result: ValidationResult) -> None:
        self.file_path = file_path
        self.result = result

    @property
    def name(self) -> str:
        return self.file_path.name

    @property
    def valid(self) -> bool:
        return self.result.valid

    @property
    def has_findings(self) -> bool:
        return bool(self.result.errors or self.result.warnings)


class ValidateReport:
    def __init__(self, skill: str, files: list[FileReport]) -> None:
        self.skill = skill
        self.files = files

    @property
    def valid_count(self) -> int:
        return sum(1 for f in self.files if f.valid)

    @property
    def invalid_count(self) -> int:
        return sum(1 for f in self.files if not f.valid)

    @property
    def passed(self) -> bool:
        return self.invalid_count == 0

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1


class BuildResult:
    def __init__(
        self,
        skill: str,
        sections: list[Section],
        rules: list[Rule],
        reports: list[FileReport],
        profile: Profile | None = None,
        excluded: int = 0,
        output_path: Path | None = None,
        profile_key: str | None = None,
    ) -> None:
        self.skill = skill
        self.sections = sections
        self.rules = rules
        self.reports = reports
        self.profile = profile
        # file stem the profile was loaded from; names AGENTS.<key>.md
        self.profile_key = profile_key
        self.excluded = excluded
        self.output_path = output_path

    @property
    def skipped(self) -> list[FileReport]:
        return [r for r in self.reports if not r.valid]

    @property
    def total_files(self) -> int:
        return len(self.reports)


def get_reference_files(references_dir: Path) -> list[Path]:
    """Rule files directly inside *references_dir*, sorted; ``_``-prefixed files are skipped."""
    references_dir = Path(references_dir)
    if not references_dir.is_dir():
        return []
    return sorted(
        p for p in references_dir.iterdir()
        if p.is_file() and p.suffix == ".md" and not p.name.startswith("_")
    )


def assign_rule_ids(rules: list[Rule]) -> list[Rule]:
    """Sort by section then title and number each rule ``"{section}.{index}"``."""
    ordered = sorted(rules, key=lambda r: (r.section, r.title.lower(), str(r.file_path or "")))
    counters: dict[int, int] = {}
    numbered: list[Rule] = []
    for rule in ordered:
        counters[rule.section] = counters.get(rule.section, 0) + 1
        numbered.append(replace(rule, id=f"{rule.section}.{counters[rule.section]}"))
    return numbered


class SkillsBuildEngine:
    """Central orchestrator for validate and build runs."""

    def __init__(self, settings: SkillsBuildSettings, root_dir: Path | None = None) -> None:
        self.settings = settings
        self.root_dir = (root_dir or Path.cwd()).resolve()
        self._validator = RuleValidator(
            classifier=settings.validation.classifier(),
            min_explanation_length=settings.validation.min_explanation_length,
        )

    def skill_names(self) -> list[str]:
        return discover_skills(self.root_dir, self.settings)

    def resolve(self, name: str) -> SkillPaths:
        return resolve_skill(self.root_dir, self.settings, name)

    def load_sections(self, paths: SkillPaths) -> list[Section]:
        return parse_sections(paths.references_dir, self.settings.sections_file)

    def profile_names(self, paths: SkillPaths) -> list[str]:
        return list_profiles(paths.profiles_dir)

    def load_profile(self, paths: SkillPaths, name: str) -> Profile:
        return load_profile(paths.profiles_dir, name)

    def validate_files(self, paths: SkillPaths, sections: list[Section] | None = None) -> list[FileReport]:
        section_map = build_section_map(sections if sections is not None else self.load_sections(paths))
        reports: list[FileReport] = []
        for file_path in get_reference_files(paths.references_dir):
            result = self._validator.validate_file(file_path, section_map)
            logger.debug("%s: %d error(s), %d warning(s)", file_path.name, len(result.errors), len(result.warnings))
            reports.append(FileReport(file_path, result))
        return reports

    def run_validate(self, paths: SkillPaths) -> ValidateReport:
        return ValidateReport(skill=paths.name, files=self.validate_files(paths))

    def collect_rules(self, paths: SkillPaths) -> tuple[list[Section], list[Rule], list[FileReport]]:
        sections = self.load_sections(paths)
        reports = self.validate_files(paths, sections)
        valid_rules = [r.result.rule for r in reports if r.valid and r.result.rule is not None]
        return sections, assign_rule_ids(valid_rules), reports

    def run_build(
        self,
        paths: SkillPaths,
        profile: Profile | str | None = None,
        write: bool = True,
        profile_key: str | None = None,
    ) -> BuildResult:
        """Build one document; a profile given by name is loaded from ``profiles/<name>.*``.

        *profile_key* names the ``AGENTS.<key>.md`` output for a ``Profile``
        passed in directly; it defaults to the file stem for named profiles.
        """
        if isinstance(profile, str):
            profile_key = profile
            profile = self.load_profile(paths, profile)
        elif profile is not None and profile_key is None:
            profile_key = profile.name
        if profile_key is not None and Path(profile_key).name != profile_key:
            raise ValueError(f'Profile output key "{profile_key}" must be a plain file stem')
        sections, rules, reports = self.collect_rules(paths)

        excluded = 0
        if profile is not None:
            kept = filter_rules_for_profile(rules, profile)
            excluded = len(rules) - len(kept)
            rules = kept
            logger.debug("Profile %s excluded %d rule(s)", profile.name, excluded)

        result = BuildResult(
            skill=paths.name, sections=sections, rules=rules, reports=reports,
            profile=profile, excluded=excluded, profile_key=profile_key,
        )
        if write:
            result.output_path = self._write_output(paths, result)
        return result

    def run_build_all_profiles(self, paths: SkillPaths, write: bool = True) -> list[BuildResult]:
        return [self.run_build(paths, name, write=write) for name in self.profile_names(paths)]

    def _write_output(self, paths: SkillPaths, result: BuildResult) -> Path:
        title, body = read_skill_file(paths.skill_file, paths.name)
        document = render_agents_md(
            title=title,
            sections=result.sections,
            rules=result.rules,
            metadata=load_metadata(paths.metadata_file),
            profile=result.profile,
            overview=body,
        )
        output = paths.profile_output(result.profile_key) if result.profile_key else paths.agents_output
        output.write_text(document, encoding="utf-8")
        if result.profile is None and self.settings.create_symlink:
            create_symlink(output, paths.claude_symlink)
        return output
