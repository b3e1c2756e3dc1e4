"""
xcframework CLI - Main entry point.

Provides commands for building schemes into .xcframeworks and for merging
existing frameworks.
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from xcfkit.config.loader import (
    create_assembler_config_from_args,
    create_builder_config_from_args,
    generate_default_config,
    load_config_from_yaml,
)
from xcfkit.config.models import AssemblerConfig, BuilderConfig
from xcfkit.errors import ToolError, XCFrameworkKitError
from xcfkit.state.report import RunReport

app = typer.Typer(
    name="xcframework",
    help="Build and assemble .xcframework bundles from Xcode schemes or existing frameworks",
    no_args_is_help=True,
)

console = Console()


# =============================================================================
# Helper Functions
# =============================================================================


def configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(name)s: %(message)s")


def print_error(error: Exception, verbose: bool) -> None:
    """Print a failure, with the tool command line when the error carries one."""
    console.print(f"[bold red]Error:[/bold red] {error}")
    if isinstance(error, ToolError) and error.command and verbose:
        console.print(f"[dim]Command: {' '.join(error.command)}[/dim]")


def save_report(report: RunReport, report_path: Optional[str]) -> None:
    if report_path:
        saved = report.save(Path(report_path))
        console.print(f"[cyan]Report written to {saved}[/cyan]")


# =============================================================================
# Commands
# =============================================================================


@app.command()
def build(
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Path to the .xcodeproj"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Name of the .xcframework (required with several schemes)"),
    output_dir: Optional[str] = typer.Option(None, "--output-dir", "-o", help="Output directory for the .xcframework"),
    build_dir: Optional[str] = typer.Option(None, "--build-dir", "-b", help="Directory for intermediate archives"),
    ios: Optional[str] = typer.Option(None, "--ios", help="iOS scheme"),
    watchos: Optional[str] = typer.Option(None, "--watchos", help="watchOS scheme"),
    tvos: Optional[str] = typer.Option(None, "--tvos", help="tvOS scheme"),
    macos: Optional[str] = typer.Option(None, "--macos", help="macOS scheme"),
    compiler_argument: Optional[list[str]] = typer.Option(None, "--compiler-argument", help="Extra argument for xcodebuild archive (repeatable)"),
    keep_archives: bool = typer.Option(False, "--keep-archives", help="Keep the intermediate archives"),
    jobs: int = typer.Option(1, "--jobs", "-j", min=1, help="Number of targets archived concurrently"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration YAML file"),
    report: Optional[str] = typer.Option(None, "--report", help="Write a JSON run report to this path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Archive schemes for every SDK of their platform and merge them.

    Examples:
        xcframework build -p MyLib.xcodeproj --ios MyLib-iOS -o ./out -b ./build
        xcframework build -p MyLib.xcodeproj -n MyLib --ios MyLib-iOS --macos MyLib-macOS -o ./out -b ./build
        xcframework build -c xcframework.yaml
    """
    configure_logging(verbose)
    run_report = RunReport("build")

    try:
        base: BuilderConfig | None = None
        if config:
            console.print(f"[cyan]Loading configuration from {config}...[/cyan]")
            base = load_config_from_yaml(Path(config)).build

        cfg = create_builder_config_from_args(
            project=Path(project) if project else None,
            output_dir=Path(output_dir) if output_dir else None,
            build_dir=Path(build_dir) if build_dir else None,
            name=name,
            ios_scheme=ios,
            watchos_scheme=watchos,
            tvos_scheme=tvos,
            macos_scheme=macos,
            verbose=verbose,
            keep_archives=keep_archives,
            compiler_arguments=compiler_argument,
            jobs=jobs,
            base=base,
        )
        display_build_config(cfg)

        from xcfkit.builder.orchestrator import MultiTargetBuilder

        builder = MultiTargetBuilder(cfg)
        _, output_directory, _, targets, artifact_name = builder.validate()
        with console.status(f"Building {len(targets)} targets..."):
            archives = builder.run()

        run_report.record_archives(archives, output_directory, artifact_name)
        run_report.finish(succeeded=True)
        display_archives(archives)
        for artifact in run_report.artifacts:
            console.print(f"[green]✓[/green] Created {artifact}")

    except XCFrameworkKitError as e:
        run_report.record_error(e)
        run_report.finish(succeeded=False)
        print_error(e, verbose)
        save_report(run_report, report)
        raise typer.Exit(1)

    save_report(run_report, report)


@app.command()
def assemble(
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Name of the .xcframework"),
    output_dir: Optional[str] = typer.Option(None, "--output-dir", "-o", help="Output directory for the .xcframework"),
    framework: Optional[list[str]] = typer.Option(None, "--framework", "-f", help="Path to a .framework (repeatable)"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration YAML file"),
    report: Optional[str] = typer.Option(None, "--report", help="Write a JSON run report to this path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Merge existing frameworks into one .xcframework.

    Fat frameworks are thinned into one copy per architecture first.

    Examples:
        xcframework assemble -n MyLib -o ./out -f ios/MyLib.framework -f sim/MyLib.framework
    """
    configure_logging(verbose)
    run_report = RunReport("assemble")

    try:
        base: AssemblerConfig | None = None
        if config:
            console.print(f"[cyan]Loading configuration from {config}...[/cyan]")
            base = load_config_from_yaml(Path(config)).assemble

        cfg = create_assembler_config_from_args(
            name=name,
            output_dir=Path(output_dir) if output_dir else None,
            framework_paths=[Path(f) for f in framework] if framework else None,
            verbose=verbose,
            base=base,
        )

        from xcfkit.assembler.orchestrator import assemble_bundles

        with console.status("Assembling frameworks..."):
            assemble_bundles(cfg)

        run_report.record_artifact(cfg.output_path)
        run_report.finish(succeeded=True)
        console.print(f"[green]✓[/green] Created {cfg.output_path}")

    except XCFrameworkKitError as e:
        run_report.record_error(e)
        run_report.finish(succeeded=False)
        print_error(e, verbose)
        save_report(run_report, report)
        raise typer.Exit(1)

    save_report(run_report, report)


@app.command("init-config")
def init_config(
    output: str = typer.Option("xcframework.yaml", "--output", "-o", help="Where to write the configuration"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
):
    """Write a default configuration file."""
    output_path = Path(output)
    if output_path.exists() and not force:
        console.print(f"[bold red]Error:[/bold red] {output_path} already exists (use --force)")
        raise typer.Exit(1)

    generate_default_config(output_path)
    console.print(f"[green]✓[/green] Configuration written to {output_path}")


# =============================================================================
# Helper Display Functions
# =============================================================================


def display_build_config(cfg: BuilderConfig) -> None:
    """Display the build configuration."""
    schemes = cfg.schemes()
    scheme_text = ", ".join(f"{platform.value}: {scheme}" for platform, scheme in schemes.items())
    info_text = f"""
[bold cyan]Project:[/bold cyan] {cfg.project}
[bold cyan]Schemes:[/bold cyan] {scheme_text or "-"}
[bold cyan]Output:[/bold cyan] {cfg.output_directory}
[bold cyan]Build Directory:[/bold cyan] {cfg.build_directory}
    """
    console.print(Panel(info_text.strip(), title="XCFramework Build", border_style="bold green"))

    if cfg.verbose:
        console.print("\n[bold]Configuration Details:[/bold]")
        console.print(f"  Keep Archives: {cfg.keep_archives}")
        console.print(f"  Compiler Arguments: {' '.join(cfg.compiler_arguments) or '-'}")
        console.print(f"  Jobs: {cfg.jobs}")
        console.print(f"  Archiver: {' '.join(cfg.tools.archiver)}")


def display_archives(archives) -> None:
    table = Table(title="Archives")
    table.add_column("Scheme", style="cyan")
    table.add_column("SDK")
    table.add_column("Frameworks")

    for archive in archives:
        frameworks = ", ".join(bundle.logical_name for bundle in archive.bundles)
        table.add_row(archive.scheme, archive.sdk.value, frameworks or "[dim]none[/dim]")

    console.print(table)


# =============================================================================
# Entry Point
# =============================================================================


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
