"""Tests for configuration loading and skill discovery."""
from __future__ import annotations
import pytest
from skillsbuild.config.settings import (
    SkillNotFoundError, SkillPaths, SkillsBuildSettings, ValidationConfig, discover_skills, load_settings, resolve_skill,
)


class TestValidationConfig:
    def test_defaults(self) -> None:
        c = ValidationConfig()
        assert c.min_explanation_length == 50 and "incorrect" in c.bad_label_keywords and "recommended" in c.good_label_keywords

    def test_classifier_uses_keywords(self) -> None:
        c = ValidationConfig(bad_label_keywords=["avoid"], good_label_keywords=["prefer"]).classifier()
        assert c.is_bad("Avoid this") and c.is_good("Prefer this") and not c.is_bad("Bad")


class TestSkillsBuildSettings:
    def test_defaults(self) -> None:
        s = SkillsBuildSettings()
        assert s.skills_dir == "skills" and s.output_file == "AGENTS.md" and s.symlink_file == "CLAUDE.md" and s.create_symlink


class TestLoadSettings:
    def test_load_defaults_no_file(self, tmp_path) -> None:
        assert load_settings(search_dir=tmp_path).skills_dir == "skills"

    def test_load_from_yaml(self, tmp_path) -> None:
        (tmp_path / "skillsbuild.yaml").write_text("skills_dir: docs/skills\nvalidation:\n  min_explanation_length: 20\n")
        s = load_settings(search_dir=tmp_path)
        assert s.skills_dir == "docs/skills" and s.validation.min_explanation_length == 20

    def test_walks_up_to_parent(self, tmp_path) -> None:
        (tmp_path / ".skillsbuild.yml").write_text("output_file: GUIDE.md\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert load_settings(search_dir=nested).output_file == "GUIDE.md"

    def test_explicit_path_takes_precedence(self, tmp_path) -> None:
        (tmp_path / "skillsbuild.yaml").write_text("skills_dir: one\n")
        explicit = tmp_path / "custom.yaml"
        explicit.write_text("skills_dir: two\n")
        assert load_settings(config_path=explicit, search_dir=tmp_path).skills_dir == "two"

    def test_empty_yaml_returns_defaults(self, tmp_path) -> None:
        (tmp_path / "skillsbuild.yaml").write_text("")
        assert load_settings(search_dir=tmp_path).skills_dir == "skills"


class TestSkillDiscovery:
    def test_discover_requires_skill_md(self, tmp_skill_project, default_settings) -> None:
        (tmp_skill_project / "skills" / "draft").mkdir()
        assert discover_skills(tmp_skill_project, default_settings) == ["postgres-best-practices"]

    def test_no_skills_dir(self, tmp_path, default_settings) -> None:
        assert discover_skills(tmp_path, default_settings) == []

    def test_resolve_skill_paths(self, tmp_skill_project, default_settings) -> None:
        paths = resolve_skill(tmp_skill_project, default_settings, "postgres-best-practices")
        assert paths.references_dir.name == "references" and paths.sections_file.name == "_sections.md"
        assert paths.agents_output.name == "AGENTS.md" and paths.claude_symlink.name == "CLAUDE.md"

    def test_resolve_unknown(self, tmp_skill_project, default_settings) -> None:
        with pytest.raises(SkillNotFoundError):
            resolve_skill(tmp_skill_project, default_settings, "nope")

    def test_profile_output_name(self, tmp_path, default_settings) -> None:
        paths = SkillPaths.for_skill(tmp_path / "s", default_settings)
        assert paths.profile_output("supabase").name == "AGENTS.supabase.md"
