"""skillsbuild CLI – Typer multi-command application."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from skillsbuild.config.settings import SkillNotFoundError, SkillPaths, load_settings
from skillsbuild.core.engine import BuildResult, SkillsBuildEngine, ValidateReport
from skillsbuild.core.profiles import ProfileLoadError, ProfileNotFoundError
from skillsbuild.utils.logger import (
    configure_logging, console, create_table, print_error, print_finding, print_info, print_success, print_warning,
)

__all__ = ["app"]

app = typer.Typer(
    name="skillsbuild",
    help="Validate PostgreSQL best-practice reference files and compile them into AGENTS.md.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _load_engine(config: Path | None, project_dir: Path | None, verbose: bool = False) -> SkillsBuildEngine:
    configure_logging(verbose)
    root = (project_dir or Path.cwd()).resolve()
    settings = load_settings(config_path=config, search_dir=root)
    return SkillsBuildEngine(settings=settings, root_dir=root)


def _resolve_skills(engine: SkillsBuildEngine, skill: str | None) -> list[SkillPaths]:
    if skill:
        try:
            return [engine.resolve(skill)]
        except SkillNotFoundError as exc:
            print_error(f'Skill "{exc.name}" not found in {engine.settings.skills_dir}/')
            if exc.available:
                print_info(f"Available skills: {', '.join(exc.available)}")
            raise typer.Exit(code=1)

    names = engine.skill_names()
    if not names:
        print_info(f"No skills found in {engine.settings.skills_dir}/ directory.")
        raise typer.Exit(code=0)
    console.print(f"Found {len(names)} skill(s): {', '.join(names)}\n")
    return [engine.resolve(name) for name in names]


def _banner() -> None:
    console.print(Panel(
        Text("skillsbuild", style="bold magenta", justify="center"),
        subtitle="PostgreSQL best-practice references",
        border_style="magenta", expand=False, padding=(0, 4),
    ))
    console.print()


@app.command()
def build(
    skill: Optional[str] = typer.Argument(None, help="Skill to build (default: every skill)"),
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="Only include rules compatible with this profile"),
    all_profiles: bool = typer.Option(False, "--all-profiles", help="Build the unfiltered document plus one per profile"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to skillsbuild.yaml"),
    project_dir: Optional[Path] = typer.Option(None, "--dir", "-d", help="Project root directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Compile reference files into AGENTS.md, skipping invalid ones."""
    if profile and all_profiles:
        print_error("--profile and --all-profiles cannot be combined.")
        raise typer.Exit(code=2)
    _banner()
    engine = _load_engine(config, project_dir, verbose)
    for paths in _resolve_skills(engine, skill):
        label = paths.profile_output(profile).name if profile else paths.agents_output.name
        console.print(f"[accent]{escape(f'[{paths.name}]')}[/accent] Building {label}...")
        try:
            if all_profiles:
                results = [engine.run_build(paths)] + engine.run_build_all_profiles(paths)
            else:
                results = [engine.run_build(paths, profile)]
        except ProfileNotFoundError as exc:
            print_error(f'Profile "{exc.name}" not found for skill {paths.name}')
            if exc.available:
                print_info(f"Available profiles: {', '.join(exc.available)}")
            raise typer.Exit(code=1)
        except ProfileLoadError as exc:
            print_error(escape(str(exc)))
            raise typer.Exit(code=1)

        _print_skipped(results[0])
        for result in results:
            _print_build_summary(result)
        console.print()
    print_success("Done!")


@app.command()
def validate(
    skill: Optional[str] = typer.Argument(None, help="Skill to validate (default: every skill)"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to skillsbuild.yaml"),
    project_dir: Optional[Path] = typer.Option(None, "--dir", "-d", help="Project root directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Validate reference files; exits nonzero if any file is invalid."""
    engine = _load_engine(config, project_dir, verbose)
    all_valid = True
    for paths in _resolve_skills(engine, skill):
        console.print(f"[accent]{escape(f'[{paths.name}]')}[/accent] Validating...")
        if not paths.references_dir.is_dir():
            console.print("  No references directory found.\n")
            continue
        report = engine.run_validate(paths)
        if not report.files:
            console.print("  No rule files found.\n")
            continue
        _print_validate_report(report)
        all_valid = all_valid and report.passed

    if all_valid:
        print_success("Validation passed!")
        raise typer.Exit(code=0)
    print_error("Validation failed.")
    raise typer.Exit(code=1)


@app.command()
def profiles(
    skill: Optional[str] = typer.Argument(None, help="Skill whose profiles to list (default: every skill)"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to skillsbuild.yaml"),
    project_dir: Optional[Path] = typer.Option(None, "--dir", "-d", help="Project root directory"),
) -> None:
    """List the deployment profiles available to each skill."""
    engine = _load_engine(config, project_dir)
    for paths in _resolve_skills(engine, skill):
        names = engine.profile_names(paths)
        if not names:
            print_info(escape(f"[{paths.name}] No profiles defined."))
            continue
        rows: list[list[str]] = []
        for name in names:
            try:
                loaded = engine.load_profile(paths, name)
            except ProfileLoadError as exc:
                rows.append([name, "-", "-", f"[red]{escape(exc.reason)}[/red]"])
                continue
            rows.append([
                loaded.name, loaded.min_version, loaded.max_version or "-", loaded.notes or "",
            ])
        console.print(create_table(
            f"Profiles for {paths.name}",
            [("Profile", "bold"), ("Min version", "cyan"), ("Max version", "cyan"), ("Notes", "")],
            rows,
        ))


def _print_skipped(result: BuildResult) -> None:
    for report in result.skipped:
        console.print(f"  Skipping {report.name}:")
        for error in report.result.errors:
            print_finding("ERROR", error)


def _print_build_summary(result: BuildResult) -> None:
    line = f"  Rules: {len(result.rules)} | Skipped: {len(result.skipped)}"
    if result.profile is not None:
        line += f" | Excluded by profile {result.profile.name}: {result.excluded}"
    console.print(line)
    if result.output_path is not None:
        console.print(f"  Generated: {result.output_path}")


def _print_validate_report(report: ValidateReport) -> None:
    for file_report in report.files:
        if not file_report.has_findings:
            continue
        console.print(f"\n  {file_report.name}:")
        for error in file_report.result.errors:
            print_finding("ERROR", error)
        for warning in file_report.result.warnings:
            print_finding("WARNING", warning)
    console.print(f"\n  Total: {len(report.files)} | Valid: {report.valid_count} | Invalid: {report.invalid_count}\n")
    if not report.passed:
        print_warning(f"{report.invalid_count} invalid file(s) in {report.skill}.")


if __name__ == "__main__":
    app()
