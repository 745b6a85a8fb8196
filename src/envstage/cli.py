"""Command-line interface for envstage."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click
import yaml
from rich.logging import RichHandler
from rich.markup import escape

from envstage import __version__
from envstage.config import (
    StagingConfig,
    get_local_config_path,
    load_config,
    save_config,
)
from envstage.console import console, err_console
from envstage.defaults import merge_defaults
from envstage.errors import StagingError, TargetsDirError
from envstage.stages import RunContext, StageOrchestrator, StagingLayout
from envstage.targets import DEFAULT_TEMPLATES, Target, Template, discover_targets

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    """Send envstage logs through rich, INFO with --verbose, WARNING otherwise."""
    package_logger = logging.getLogger("envstage")
    for handler in list(package_logger.handlers):
        if isinstance(handler, RichHandler):
            package_logger.removeHandler(handler)
    package_logger.addHandler(
        RichHandler(console=err_console, show_path=False, show_time=False)
    )
    package_logger.setLevel(logging.INFO if verbose else logging.WARNING)


def resolve_templates(config: StagingConfig) -> list[Template]:
    """Target templates from config, or the built-in ones if none are set."""
    if not config.templates:
        return list(DEFAULT_TEMPLATES)
    return [Template.from_dict(data) for data in config.templates]


def resolve_targets(layout: StagingLayout, config: StagingConfig) -> dict[str, Target]:
    """Discover targets and overlay the targets defined inline in config."""
    targets: dict[str, Target] = {}
    try:
        targets = discover_targets(layout.targets_dir, resolve_templates(config))
    except TargetsDirError:
        if not config.targets:
            raise
        logger.info("No targets directory, using configured targets only")

    for name, data in (config.targets or {}).items():
        targets[name] = Target.from_dict(name, data)
    return targets


def run_generate(layout: StagingLayout, config: StagingConfig) -> list[Path]:
    """Regenerate the merged property templates for a project."""
    return merge_defaults(
        layout.defaults_dir,
        layout.templates_dir,
        layout.generated_dir,
        config.merge_options(),
        suffix=config.defaults_file_extension or ".defaults.vtl",
    )


def version_callback(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    """Print version and exit."""
    if not value or ctx.resilient_parsing:
        return
    console.print(f"envstage [bold cyan]{__version__}[/bold cyan]")
    ctx.exit()


@click.group(invoke_without_command=True)
@click.option(
    "--version",
    is_flag=True,
    callback=version_callback,
    expose_value=False,
    is_eager=True,
    help="Show version and exit.",
)
@click.option("--verbose", "-v", is_flag=True, help="Show progress logging.")
@click.option(
    "--project-dir",
    "-C",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Project directory to stage.",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, project_dir: Path) -> None:
    """envstage - merge per-target configuration and package it per target."""
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["project_dir"] = project_dir
    ctx.obj["config"] = load_config(project_dir)

    if ctx.invoked_subcommand is None:
        console.print("[bold]envstage[/bold] - per-target configuration staging")
        console.print("\nRun [cyan]envstage --help[/cyan] for available commands.")


def _fail(error: StagingError) -> None:
    err_console.print(f"[red]{escape(str(error))}[/red]")
    raise SystemExit(1)


def _overlay(ctx: click.Context, **values: object) -> StagingConfig:
    """Overlay CLI options that were given onto the loaded config."""
    config: StagingConfig = ctx.obj["config"]
    given = {name: value for name, value in values.items() if value is not None}
    return config.merge(StagingConfig(**given)) if given else config


@main.command()
@click.option(
    "--targets-dir",
    default=None,
    help="Targets directory, relative to the project directory.",
)
@click.pass_context
def targets(ctx: click.Context, targets_dir: str | None) -> None:
    """List the targets found in the targets directory."""
    config = _overlay(ctx, targets_dir=targets_dir)
    layout = StagingLayout.from_config(ctx.obj["project_dir"], config)
    try:
        found = resolve_targets(layout, config)
    except StagingError as e:
        _fail(e)
        return

    if not found:
        console.print(f"[yellow]No targets found in {layout.targets_dir}.[/yellow]")
        return

    console.print(f"[bold]Targets ({len(found)}):[/bold]\n")
    for name, target in found.items():
        size = len(target.context) if target.context is not None else 0
        console.print(f"  [cyan]{name}[/cyan] [dim]({size} properties)[/dim]")


def _merge_option_flags(func: Callable[..., Any]) -> Callable[..., Any]:
    """Add the --sort/--trim/--prepend/--structured switches to a command."""
    for flag, help_text in reversed(
        [
            ("sort", "Sort the generated lines."),
            ("trim", "Drop blank lines from generated files."),
            ("prepend", "Put template lines before the defaults."),
            ("structured", "Require generated files to define the same keys."),
        ]
    ):
        func = click.option(f"--{flag}/--no-{flag}", default=None, help=help_text)(func)
    return func


@main.command()
@_merge_option_flags
@click.pass_context
def generate(
    ctx: click.Context,
    sort: bool | None,
    trim: bool | None,
    prepend: bool | None,
    structured: bool | None,
) -> None:
    """Merge defaults into the property templates."""
    config = _overlay(ctx, sort=sort, trim=trim, prepend=prepend, structured=structured)
    layout = StagingLayout.from_config(ctx.obj["project_dir"], config)
    try:
        generated = run_generate(layout, config)
    except StagingError as e:
        _fail(e)
        return

    console.print(
        f"[green]Generated {len(generated)} file(s) in {layout.generated_dir}[/green]"
    )


@main.command()
@click.argument("names", nargs=-1)
@_merge_option_flags
@click.option(
    "--include-all-resources/--no-include-all-resources",
    default=None,
    help="Copy every resource instead of only '<name>.<target>' variants.",
)
@click.option(
    "--keep-going",
    is_flag=True,
    help="Keep configuring other targets when one fails.",
)
@click.pass_context
def stage(
    ctx: click.Context,
    names: tuple[str, ...],
    sort: bool | None,
    trim: bool | None,
    prepend: bool | None,
    structured: bool | None,
    include_all_resources: bool | None,
    keep_going: bool,
) -> None:
    """Generate, render, collect and archive every target (or NAMES)."""
    config = _overlay(
        ctx,
        sort=sort,
        trim=trim,
        prepend=prepend,
        structured=structured,
        include_all_resources=include_all_resources,
    )
    context = RunContext.create(ctx.obj["project_dir"], config)
    orchestrator = StageOrchestrator(context)

    try:
        run_generate(context.layout, config)
        found = resolve_targets(context.layout, config)
        if names:
            missing = [name for name in names if name not in found]
            if missing:
                raise StagingError(f"Unknown target(s): {', '.join(missing)}")
            found = {name: found[name] for name in names}

        report = orchestrator.configure(found, keep_going=keep_going)
        for name, error in report.failures.items():
            err_console.print(f"[yellow]Skipped {name}: {escape(str(error))}[/yellow]")
        archives = orchestrator.execute(report.configured)
    except StagingError as e:
        _fail(e)
        return

    if not archives:
        console.print("[yellow]No targets staged.[/yellow]")
        return
    console.print(f"[bold]Staged {len(archives)} target(s):[/bold]")
    for archive in archives:
        console.print(f"  [green]✓[/green] {archive}")
    if not report.success:
        raise SystemExit(1)


@main.command("config")
@click.option(
    "--save",
    is_flag=True,
    help="Write the effective configuration to ./.envstage/config.yaml.",
)
@click.pass_context
def config_command(ctx: click.Context, save: bool) -> None:
    """Show the effective configuration."""
    config: StagingConfig = ctx.obj["config"]
    if save:
        path = get_local_config_path(ctx.obj["project_dir"])
        save_config(config, path)
        console.print(f"[green]Saved configuration to {path}[/green]")
        return

    console.print(
        yaml.safe_dump(config.to_dict(), default_flow_style=False, sort_keys=False),
        end="",
        markup=False,
    )
