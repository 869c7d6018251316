"""Tests for AGENTS.md rendering."""
from __future__ import annotations
from skillsbuild.core.models import CodeExample, Section, SkillMetadata
from skillsbuild.core.profiles import Profile
from skillsbuild.render.agents_md import (
    anchor, create_symlink, load_metadata, read_skill_file, render_agents_md, skill_name_to_title,
)
from tests.conftest import SKILL_MD, make_rule

SECTIONS = [
    Section(number=2, title="Connection Management", prefix="conn", impact="CRITICAL", description="Pooling."),
    Section(number=1, title="Query Performance", prefix="query", impact="CRITICAL", description="Indexes."),
]


class TestHelpers:
    def test_skill_name_to_title(self) -> None:
        assert skill_name_to_title("postgres-best-practices") == "Postgres Best Practices"

    def test_anchor(self) -> None:
        assert anchor("1.1 Add Indexes (WHERE)") == "11-add-indexes-where"

    def test_read_skill_file_title_and_overview(self, tmp_path) -> None:
        path = tmp_path / "SKILL.md"
        path.write_text(SKILL_MD)
        assert read_skill_file(path, "x") == ("Postgres Best Practices", "Performance optimization guide for PostgreSQL.")

    def test_read_skill_file_missing(self, tmp_path) -> None:
        assert read_skill_file(tmp_path / "SKILL.md", "supabase-tips") == ("Supabase Tips", "")

    def test_load_metadata(self, tmp_path) -> None:
        (tmp_path / "metadata.json").write_text('{"version": "1.0", "abstract": "A"}')
        assert load_metadata(tmp_path / "metadata.json").version == "1.0"

    def test_load_metadata_invalid_is_ignored(self, tmp_path) -> None:
        (tmp_path / "metadata.json").write_text("{oops")
        assert load_metadata(tmp_path / "metadata.json") is None

    def test_create_symlink_relative(self, tmp_path) -> None:
        target = tmp_path / "AGENTS.md"
        target.write_text("doc")
        (tmp_path / "CLAUDE.md").write_text("stale")
        create_symlink(target, tmp_path / "CLAUDE.md")
        assert (tmp_path / "CLAUDE.md").is_symlink() and (tmp_path / "CLAUDE.md").readlink().name == "AGENTS.md"


class TestRenderAgentsMd:
    def test_sections_sorted_and_empty_sections_omitted(self) -> None:
        doc = render_agents_md("Guide", SECTIONS, [make_rule(id="1.1")])
        assert "## 1. Query Performance" in doc and "Connection Management" not in doc

    def test_rule_block(self) -> None:
        rule = make_rule(id="1.1", references=["https://example.com/a"], min_version="11", extensions=["pgcrypto"])
        doc = render_agents_md("Guide", SECTIONS, [rule])
        assert "### 1.1 Add Indexes on WHERE and JOIN Columns" in doc
        assert "**Impact: CRITICAL (100x faster)**" in doc
        assert "**Requires:** PostgreSQL 11+; extensions: pgcrypto" in doc
        assert "Reference: https://example.com/a" in doc

    def test_language_defaults_to_sql(self) -> None:
        rule = make_rule(id="1.1", examples=[CodeExample(label="Good", code="select 1;", description="simple")])
        doc = render_agents_md("Guide", SECTIONS, [rule])
        assert "**Good (simple):**\n\n```sql\nselect 1;\n```" in doc

    def test_table_of_contents(self) -> None:
        doc = render_agents_md("Guide", SECTIONS, [make_rule(id="1.1")])
        assert "## Table of Contents" in doc and "1. [Query Performance](#1-query-performance)" in doc

    def test_metadata_and_profile_header(self) -> None:
        meta = SkillMetadata(version="1.0.0", abstract="About.", references=["https://postgresql.org"])
        profile = Profile(name="legacy", min_version="10", max_version="12", notes="Old fleet")
        doc = render_agents_md("Guide", SECTIONS, [make_rule(id="1.1")], metadata=meta, profile=profile)
        assert doc.startswith("# Guide\n") and "**Version 1.0.0**" in doc
        assert "> **Profile:** legacy (PostgreSQL 10-12)" in doc and "> Old fleet" in doc
        assert "## Abstract" in doc and "1. https://postgresql.org" in doc

    def test_multiple_references_listed(self) -> None:
        doc = render_agents_md("Guide", SECTIONS, [make_rule(id="1.1", references=["https://a", "https://b"])])
        assert "References:\n- https://a\n- https://b" in doc
