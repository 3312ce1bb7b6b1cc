"""CLI interface for declutter."""

import logging
import threading
from datetime import timedelta
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from declutter import __version__
from declutter.categories import CATEGORIES, OTHER
from declutter.cleaner import remove_entries
from declutter.config import load_settings
from declutter.display import (
    confirm_action,
    console,
    show_cleanup_preview,
    show_cleanup_result,
    show_errors,
    show_locations,
    show_report,
    show_rule,
    show_rule_result,
    show_rules,
    show_scanning_progress,
    show_status,
)
from declutter.locations import LocationManager
from declutter.models import (
    CleaningRule,
    RiskTier,
    RuleAction,
    RuleTarget,
    ScanCriterion,
    ScanLocation,
    ScanReport,
    Schedule,
)
from declutter.monitor import DiskMonitor, get_disk_usage
from declutter.orchestrator import ScanObserver, ScanOrchestrator
from declutter.privileges import delete_with_privileges
from declutter.rules import RulesEngine, run_scheduler, validate_rule

log = logging.getLogger(__name__)

err_console = Console(stderr=True)

# Create Typer app
app = typer.Typer(
    name="declutter",
    help="Find and remove wasteful files - on demand or with scheduled rules",
    add_completion=False,
)
rules_app = typer.Typer(help="Manage and run automated cleaning rules.", no_args_is_help=True)
locations_app = typer.Typer(help="Manage the folders that scans cover.", no_args_is_help=True)
app.add_typer(rules_app, name="rules")
app.add_typer(locations_app, name="locations")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"declutter version {__version__}")
        raise typer.Exit()


def setup_logging(verbose: bool) -> None:
    """Route log records through rich on stderr."""
    level = logging.DEBUG if verbose else load_settings().log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging."),
) -> None:
    """declutter - find and remove wasteful files."""
    setup_logging(verbose)


def _rules_engine() -> RulesEngine:
    settings = load_settings()
    return RulesEngine(max_workers=settings.rule_workers, protected_paths=settings.protected_paths)


class _ProgressObserver(ScanObserver):
    """Feeds orchestrator notifications into a rich progress bar."""

    def __init__(self, progress, task) -> None:
        self.progress = progress
        self.task = task

    def on_scan_start(self) -> None:
        self.progress.update(self.task, description="Scanning...")

    def on_scan_progress(self, fraction: float) -> None:
        self.progress.update(self.task, completed=fraction * 100)

    def on_scan_finish(self, report: ScanReport) -> None:
        self.progress.update(self.task, completed=100, description="Done")


def _scan_locations(paths: Optional[list[str]], category: str) -> list[ScanLocation]:
    if paths:
        return [ScanLocation(name=p, path=p, categories=[category]) for p in paths]
    return LocationManager().enabled_locations()


def _run_scan(locations: list[ScanLocation], quiet: bool = False) -> ScanReport:
    """Run the orchestrator and pump its notifications on this thread."""
    with show_scanning_progress(disable=quiet) as progress:
        task = progress.add_task("Starting...", total=100)
        orchestrator = ScanOrchestrator(observer=_ProgressObserver(progress, task))
        orchestrator.start_scan(locations)
        try:
            report = orchestrator.wait()
        except KeyboardInterrupt:
            orchestrator.cancel_scan()
            report = orchestrator.wait()
        finally:
            orchestrator.shutdown()
    return report or ScanReport(cancelled=True)


@app.command()
def scan(
    paths: Optional[list[str]] = typer.Option(
        None, "--path", "-p", help="Scan this folder instead of the saved locations (repeatable)"
    ),
    category: str = typer.Option(OTHER, "--category", "-c", help="Category applied to --path folders"),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON"),
) -> None:
    """Scan saved locations (or the given folders) for wasteful files."""
    if category not in CATEGORIES:
        console.print(f"[red]Unknown category: {escape(category)}[/red]")
        console.print("\nAvailable categories:")
        for name in CATEGORIES:
            console.print(f"  • {name}")
        raise typer.Exit(1)

    locations = _scan_locations(paths, category)
    if not locations:
        console.print("[yellow]No enabled scan locations. Add one with 'declutter locations add'.[/yellow]")
        raise typer.Exit(0)

    report = _run_scan(locations, quiet=as_json)
    if as_json:
        typer.echo(report.model_dump_json(indent=2))
    else:
        console.print()
        show_report(report)


@app.command()
def clean(
    risk: RiskTier = typer.Option(RiskTier.LOW, "--risk", help="Highest risk tier to include"),
    paths: Optional[list[str]] = typer.Option(None, "--path", "-p", help="Folder to scan (repeatable)"),
    category: str = typer.Option(OTHER, "--category", "-c", help="Category applied to --path folders"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Simulate without deleting"),
    yes: bool = typer.Option(False, "-y", "--yes", help="Skip confirmation prompts"),
    elevate: bool = typer.Option(True, "--elevate/--no-elevate", help="Retry failed deletes with pkexec"),
) -> None:
    """Scan, then permanently delete matches up to a risk tier."""
    locations = _scan_locations(paths, category)
    if not locations:
        console.print("[yellow]No enabled scan locations.[/yellow]")
        raise typer.Exit(0)

    report = _run_scan(locations)
    for entry in report.entries:
        entry.selected = entry.risk_tier.rank <= risk.rank
    selected = [e for e in report.entries if e.selected]

    if not selected:
        console.print("[yellow]Nothing to clean.[/yellow]")
        show_errors(report.errors)
        raise typer.Exit(0)

    console.print()
    show_cleanup_preview(selected, dry_run=dry_run)

    if not yes and not dry_run:
        console.print()
        if not confirm_action("Permanently delete these items?"):
            console.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(0)

    settings = load_settings()
    disk_before = get_disk_usage()
    result = remove_entries(
        selected,
        dry_run=dry_run,
        elevated=delete_with_privileges if elevate else None,
        protected_paths=settings.protected_paths,
    )
    disk_after = get_disk_usage()
    show_cleanup_result(result, disk_before, disk_after)
    if not result.success:
        raise typer.Exit(1)


@app.command()
def status() -> None:
    """Show current disk usage and its recent trend."""
    monitor = DiskMonitor()
    usage = monitor.sample()
    if usage is None:
        console.print("[red]Could not read disk usage.[/red]")
        raise typer.Exit(1)
    show_status(usage, monitor.usage_trend())


@app.command()
def watch(
    interval: int = typer.Option(300, "--interval", "-i", min=1, help="Seconds between due-rule checks"),
) -> None:
    """Keep running and execute enabled rules whenever they become due."""
    engine = _rules_engine()
    monitor = DiskMonitor()
    stop = threading.Event()
    console.print(f"[bold]Watching {sum(r.is_enabled for r in engine.rules)} enabled rule(s)[/bold] (Ctrl-C to stop)")

    def report_results(results) -> None:
        for result in results:
            show_rule_result(result)

    try:
        run_scheduler(engine, stop, interval=interval, on_results=report_results, on_tick=monitor.sample)
    except KeyboardInterrupt:
        stop.set()
        console.print("\n[yellow]Stopped[/yellow]")


# =============================================================================
# rules
# =============================================================================


def _require_rule(engine: RulesEngine, rule_id: str) -> CleaningRule:
    rule = engine.get_rule(rule_id)
    if rule is None:
        console.print(f"[red]No unique rule matches '{escape(rule_id)}'[/red]")
        raise typer.Exit(1)
    return rule


@rules_app.command("list")
def rules_list() -> None:
    """List all cleaning rules."""
    show_rules(_rules_engine().rules)


@rules_app.command("show")
def rules_show(rule_id: str = typer.Argument(..., help="Rule ID or unique prefix")) -> None:
    """Show one rule and its targets."""
    show_rule(_require_rule(_rules_engine(), rule_id))


@rules_app.command("add")
def rules_add(
    name: str = typer.Option(..., "--name", "-n", help="Rule name"),
    path: str = typer.Option(..., "--path", "-p", help="Folder the rule cleans"),
    pattern: Optional[str] = typer.Option(None, "--pattern", help="Regex searched in file names"),
    min_size: Optional[int] = typer.Option(None, "--min-size", min=0, help="Only files larger than this many bytes"),
    min_age_days: Optional[float] = typer.Option(
        None, "--min-age-days", min=0, help="Only files unmodified for longer than this"
    ),
    action: RuleAction = typer.Option(RuleAction.MOVE_TO_TRASH, "--action", help="What to do with matches"),
    schedule: Schedule = typer.Option(Schedule.MANUAL, "--schedule", help="How often to run"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Category to record on the target"),
    description: str = typer.Option("", "--description", help="Free-form description"),
    enable: bool = typer.Option(False, "--enable", help="Enable the rule right away"),
) -> None:
    """Create a rule with a single target."""
    rule = CleaningRule(
        name=name,
        description=description,
        targets=[
            RuleTarget(
                path=path,
                criterion=ScanCriterion(
                    pattern=pattern,
                    size_threshold=min_size,
                    age_threshold=timedelta(days=min_age_days) if min_age_days is not None else None,
                ),
                action=action,
                category=category,
            )
        ],
        schedule=schedule,
        is_enabled=enable,
    )

    problems = validate_rule(rule)
    if problems:
        for problem in problems:
            console.print(f"[red]{escape(problem)}[/red]")
        raise typer.Exit(1)

    _rules_engine().add_rule(rule)
    console.print(f"[green]Added rule[/green] {escape(rule.name)} [dim]({rule.id[:8]})[/dim]")


@rules_app.command("delete")
def rules_delete(rule_id: str = typer.Argument(..., help="Rule ID or unique prefix")) -> None:
    """Delete a rule."""
    engine = _rules_engine()
    rule = _require_rule(engine, rule_id)
    engine.delete_rule(rule.id)
    console.print(f"Deleted rule {escape(rule.name)}")


def _set_enabled(rule_id: str, enabled: bool) -> None:
    engine = _rules_engine()
    rule = _require_rule(engine, rule_id)
    if rule.is_enabled != enabled:
        engine.toggle_rule(rule.id)
    console.print(f"{escape(rule.name)}: {'enabled' if enabled else 'disabled'}")


@rules_app.command("enable")
def rules_enable(rule_id: str = typer.Argument(..., help="Rule ID or unique prefix")) -> None:
    """Enable a rule for scheduled runs."""
    _set_enabled(rule_id, True)


@rules_app.command("disable")
def rules_disable(rule_id: str = typer.Argument(..., help="Rule ID or unique prefix")) -> None:
    """Disable a rule."""
    _set_enabled(rule_id, False)


@rules_app.command("run")
def rules_run(
    rule_id: str = typer.Argument(..., help="Rule ID or unique prefix"),
    yes: bool = typer.Option(False, "-y", "--yes", help="Skip confirmation prompts"),
) -> None:
    """Run one rule now, whatever its schedule."""
    engine = _rules_engine()
    rule = _require_rule(engine, rule_id)

    if not yes and not confirm_action(f"Run '{rule.name}' now?"):
        console.print("[yellow]Cancelled[/yellow]")
        raise typer.Exit(0)

    show_rule_result(engine.execute_rule(rule))


@rules_app.command("run-due")
def rules_run_due() -> None:
    """Run every enabled rule whose schedule says it is due."""
    results = _rules_engine().check_and_execute_due_rules()
    if not results:
        console.print("No rules are due.")
        return
    for result in results:
        show_rule_result(result)


# =============================================================================
# locations
# =============================================================================


@locations_app.command("list")
def locations_list() -> None:
    """List scan locations."""
    show_locations(LocationManager().locations)


@locations_app.command("add")
def locations_add(
    path: str = typer.Argument(..., help="Folder to scan"),
    categories: Optional[list[str]] = typer.Option(
        None, "--category", "-c", help="Category tag; the first one drives classification (repeatable)"
    ),
    name: Optional[str] = typer.Option(None, "--name", help="Display name"),
) -> None:
    """Add a folder to the saved scan locations."""
    tags = categories or [OTHER]
    unknown = [c for c in tags if c not in CATEGORIES]
    if unknown:
        console.print(f"[red]Unknown category: {escape(', '.join(unknown))}[/red]")
        raise typer.Exit(1)

    location = LocationManager().add_location(path, tags, name=name)
    console.print(f"[green]Added location[/green] {escape(location.path)} [dim]({location.id[:8]})[/dim]")


def _require_location(manager: LocationManager, location_id: str) -> ScanLocation:
    location = manager.get(location_id)
    if location is None:
        console.print(f"[red]No unique location matches '{escape(location_id)}'[/red]")
        raise typer.Exit(1)
    return location


@locations_app.command("remove")
def locations_remove(location_id: str = typer.Argument(..., help="Location ID or unique prefix")) -> None:
    """Remove a scan location."""
    manager = LocationManager()
    location = _require_location(manager, location_id)
    manager.remove_location(location.id)
    console.print(f"Removed {escape(location.path)}")


@locations_app.command("toggle")
def locations_toggle(location_id: str = typer.Argument(..., help="Location ID or unique prefix")) -> None:
    """Enable or disable a scan location."""
    manager = LocationManager()
    location = manager.toggle_location(_require_location(manager, location_id).id)
    state = "enabled" if location and location.is_enabled else "disabled"
    console.print(f"{escape(location.path if location else location_id)}: {state}")


if __name__ == "__main__":
    app()
