from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from versiongate.batch import ArtifactOutcome, decide_many, discover_artifacts
from versiongate.canonical import canonical_model_str, pretty_json_str
from versiongate.config import MANIFEST_FILENAME, config_from_env, env_overrides
from versiongate.engine import run_decision
from versiongate.errors import VersionGateError
from versiongate.manifest import load_record
from versiongate.semver import classify_change, parse_version

app = typer.Typer(help="versiongate: content-addressed version decisions for build artifacts")

console = Console()
err_console = Console(stderr=True)

ARTIFACT_DIR_ARGUMENT = typer.Argument(..., file_okay=False)
NAME_OPTION = typer.Option(None, "--name")
MANIFEST_OPTION = typer.Option(None, "--manifest", dir_okay=False)
EXPORTS_FILE_OPTION = typer.Option(None, "--exports-file")
PINS_FILE_OPTION = typer.Option(None, "--pins-file", "--versions-env", dir_okay=False)
FORCE_BUMP_OPTION = typer.Option(None, "--force-bump")
WORKERS_OPTION = typer.Option(4, "--workers", min=1)
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v")


def _init_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        return
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command("decide")
def decide_cmd(
    artifact_dir: Path = ARTIFACT_DIR_ARGUMENT,
    name: str | None = NAME_OPTION,
    manifest: Path | None = MANIFEST_OPTION,
    exports_file: str | None = EXPORTS_FILE_OPTION,
    pins_file: Path | None = PINS_FILE_OPTION,
    force_bump: str | None = FORCE_BUMP_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    _init_logging(verbose)
    try:
        config = config_from_env(
            artifact_dir,
            artifact_name=name,
            manifest_path=manifest,
            exports_file=exports_file,
            pins_file=pins_file,
            forced_bump=force_bump,
        )
        result = run_decision(config)
    except VersionGateError as exc:
        err_console.print(f"versiongate: {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    typer.echo(canonical_model_str(result))


@app.command("show")
def show_cmd(
    artifact_dir: Path = ARTIFACT_DIR_ARGUMENT,
    manifest: Path | None = MANIFEST_OPTION,
) -> None:
    path = manifest or artifact_dir / MANIFEST_FILENAME
    record = load_record(path)
    if record is None:
        console.print(f"No manifest at {path}")
        raise typer.Exit(code=1)
    typer.echo(pretty_json_str(record.to_payload()), nl=False)


def _render_outcomes(outcomes: list[ArtifactOutcome]) -> None:
    table = Table(title="Version decisions")
    table.add_column("Artifact")
    table.add_column("Decision")
    table.add_column("Current")
    table.add_column("Next")
    table.add_column("Detail")
    for outcome in outcomes:
        if outcome.result is None:
            error = escape(outcome.error or "")
            table.add_row(outcome.artifact_name, "[red]error[/red]", "-", "-", error)
            continue
        result = outcome.result
        table.add_row(
            outcome.artifact_name,
            result.decision,
            result.current_version or "-",
            result.next_version or "-",
            "initial" if result.initial else "",
        )
    console.print(table)


@app.command("decide-all")
def decide_all_cmd(
    root: Path = typer.Argument(..., exists=True, file_okay=False),
    exports_file: str | None = EXPORTS_FILE_OPTION,
    pins_file: Path | None = PINS_FILE_OPTION,
    force_bump: str | None = FORCE_BUMP_OPTION,
    workers: int = WORKERS_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    _init_logging(verbose)
    env_bump, env_pins = env_overrides()
    try:
        configs = discover_artifacts(
            root,
            exports_file=exports_file,
            pins_file=pins_file if pins_file is not None else env_pins,
            forced_bump=force_bump if force_bump is not None else env_bump,
        )
        outcomes = decide_many(configs, max_workers=workers)
    except VersionGateError as exc:
        err_console.print(f"versiongate: {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    if not outcomes:
        console.print(f"No artifacts under {root}")
        return
    _render_outcomes(outcomes)
    if any(not outcome.ok for outcome in outcomes):
        raise typer.Exit(code=1)


@app.command("compare")
def compare_cmd(old: str, new: str) -> None:
    try:
        change = classify_change(parse_version(old), parse_version(new))
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(change)
    if change == "downgrade":
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
