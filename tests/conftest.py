"""Shared pytest fixtures for the skillsbuild test suite."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path

import pytest

from skillsbuild.config.settings import SkillPaths, SkillsBuildSettings
from skillsbuild.core.models import CodeExample, Rule

SECTIONS_MD = textwrap.dedent("""\
    # Sections

    This file defines the rule categories.

    ---

    ## 1. Query Performance (query)

    **Impact:** CRITICAL
    **Description:** Slow queries, missing indexes, inefficient query plans.

    ## 2. Connection Management (conn)

    **Impact:** CRITICAL
    **Description:** Connection pooling, limits, and serverless strategies.

    ## 3. Monitoring & Diagnostics (monitor)

    **Impact:** LOW-MEDIUM
    **Description:** Using pg_stat_statements and EXPLAIN to find problems.
""")

QUERY_MISSING_INDEXES = textwrap.dedent("""\
    ---
    title: Add Indexes on WHERE and JOIN Columns
    impact: CRITICAL
    impactDescription: 100-1000x faster queries on large tables
    tags: indexes, performance, sequential-scan
    ---

    ## Add Indexes on WHERE and JOIN Columns

    Queries filtering or joining on unindexed columns cause full table scans,
    which become exponentially slower as tables grow.

    **Bad (sequential scan on large table):**

    ```sql
    select * from orders where customer_id = 123;
    ```

    **Good (index enables efficient lookup):**

    ```sql
    create index orders_customer_id_idx on orders (customer_id);
    ```

    Reference: [Query Optimization](https://supabase.com/docs/guides/database/query-optimization)
""")

QUERY_COVERING_INDEX = textwrap.dedent("""\
    ## Use Covering Indexes for Index-Only Scans

    **Impact: HIGH (2-5x faster reads by avoiding heap fetches)**

    **Requires:** PostgreSQL 11+

    Covering indexes store extra columns in the index leaf pages so the
    planner can answer a query without visiting the table heap.

    ### Incorrect

    ```sql
    create index users_email_idx on users (email);
    ```

    ### Correct (INCLUDE clause)

    ```
    create index users_email_idx on users (email) include (name, created_at);
    ```

    The INCLUDE columns are not part of the search key.

    References:
    - [Index-Only Scans](https://www.postgresql.org/docs/current/indexes-index-only-scans.html)
    - https://www.postgresql.org/docs/current/sql-createindex.html
""")

MONITOR_PG_STAT_STATEMENTS = textwrap.dedent("""\
    ---
    title: Enable pg_stat_statements for Query Analysis
    impact: LOW-MEDIUM
    metadata:
      impactDescription: Identify the slowest queries by total time
      minVersion: 13
      extensions:
        - pg_stat_statements
    ---

    ## Enable pg_stat_statements for Query Analysis

    pg_stat_statements tracks execution statistics for every normalized
    statement, which makes it the starting point for query tuning.

    **Correct usage:**

    ```sql
    select query, total_exec_time from pg_stat_statements order by 2 desc limit 10;
    ```
""")

CONN_NEUTRAL_LABELS = textwrap.dedent("""\
    ---
    title: Use a Connection Pooler
    impact: CRITICAL
    impactDescription: Prevents connection exhaustion
    ---

    Each PostgreSQL connection is a separate backend process consuming memory,
    so unpooled serverless clients exhaust max_connections quickly.

    **Before:**

    ```sql
    show max_connections;
    ```

    **After:**

    ```sql
    alter system set max_connections = 200;
    ```
""")

UNKNOWN_PREFIX_RULE = textwrap.dedent("""\
    ## Some Rule

    **Impact: LOW**

    Text.
""")

SKILL_MD = textwrap.dedent("""\
    ---
    name: postgres-best-practices
    description: Postgres performance guidance.
    ---

    # Postgres Best Practices

    Performance optimization guide for PostgreSQL.
""")


@pytest.fixture
def section_map() -> dict[str, int]:
    return {"query": 1, "conn": 2, "monitor": 3}


@pytest.fixture
def default_settings() -> SkillsBuildSettings:
    return SkillsBuildSettings()


@pytest.fixture
def tmp_skill_project(tmp_path: Path) -> Path:
    skill_dir = tmp_path / "skills" / "postgres-best-practices"
    refs = skill_dir / "references"
    refs.mkdir(parents=True)
    (skill_dir / "SKILL.md").write_text(SKILL_MD)
    (skill_dir / "metadata.json").write_text(json.dumps({
        "version": "1.0.0", "organization": "Supabase",
        "abstract": "Best practices for PostgreSQL.", "references": ["https://www.postgresql.org/docs/"],
    }))
    (refs / "_sections.md").write_text(SECTIONS_MD)
    (refs / "query-missing-indexes.md").write_text(QUERY_MISSING_INDEXES)
    (refs / "query-covering-index.md").write_text(QUERY_COVERING_INDEX)
    (refs / "monitor-pg-stat-statements.md").write_text(MONITOR_PG_STAT_STATEMENTS)

    profiles = skill_dir / "profiles"
    profiles.mkdir()
    (profiles / "legacy.json").write_text(json.dumps({
        "name": "legacy", "minVersion": "10", "maxVersion": "12",
        "extensions": {"available": [], "unavailable": ["pg_stat_statements"]},
    }))
    (profiles / "modern.yaml").write_text(
        "name: modern\nminVersion: '15'\nextensions:\n  available: [pg_stat_statements]\n  unavailable: []\n"
        "excludeRules: ['1.1']\nnotes: Managed Postgres 15\n"
    )
    return tmp_path


@pytest.fixture
def skill_paths(tmp_skill_project: Path, default_settings: SkillsBuildSettings) -> SkillPaths:
    return SkillPaths.for_skill(tmp_skill_project / "skills" / "postgres-best-practices", default_settings)


def make_rule(**overrides) -> Rule:
    fields = dict(
        title="Add Indexes on WHERE and JOIN Columns",
        section=1,
        impact="CRITICAL",
        impact_description="100x faster",
        explanation="Queries on unindexed columns scan the entire table on every call.",
        examples=[
            CodeExample(label="Incorrect", code="select 1;", language="sql"),
            CodeExample(label="Correct", code="create index i on t (c);", language="sql"),
        ],
        id="1.1",
    )
    fields.update(overrides)
    return Rule(**fields)
