"""Rich terminal display for declutter."""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from declutter.models import (
    CleaningRule,
    CleanupResult,
    DiskUsage,
    ProblemEntry,
    RiskTier,
    RuleExecutionResult,
    ScanLocation,
    ScanReport,
    format_size,
)
from declutter.monitor import UsageTrend

console = Console()

RISK_COLORS = {
    RiskTier.LOW: "green",
    RiskTier.MEDIUM: "yellow",
    RiskTier.HIGH: "red",
}

RISK_TITLES = {
    RiskTier.LOW: "Low Risk",
    RiskTier.MEDIUM: "Medium Risk",
    RiskTier.HIGH: "High Risk",
}


def risk_label(risk_tier: RiskTier) -> str:
    """Get styled label for risk tier."""
    color = RISK_COLORS.get(risk_tier, "white")
    return f"[{color}]{risk_tier.value.capitalize()}[/{color}]"


def _describe_criterion_age(rule: CleaningRule) -> str:
    ages = [t.criterion.age_threshold for t in rule.targets if t.criterion.age_threshold is not None]
    if not ages:
        return "-"
    return ", ".join(f"{a.days}d" if a.days else str(a) for a in ages)


def show_report(report: ScanReport) -> None:
    """Display scan results grouped by risk tier."""
    if report.cancelled:
        console.print("[yellow]Scan cancelled - showing partial results[/yellow]\n")

    if not report.entries:
        console.print("[green]Nothing wasteful found.[/green]")

    for tier in RiskTier:
        items = report.by_risk(tier)
        if not items:
            continue

        color = RISK_COLORS[tier]
        console.print(f"[bold {color}]{RISK_TITLES[tier]}[/bold {color}]")
        table = Table(show_header=True, header_style=f"bold {color}")
        table.add_column("Category", style=color)
        table.add_column("Size", justify="right")
        table.add_column("Modified")
        table.add_column("Path")

        for item in sorted(items, key=lambda x: x.size_bytes, reverse=True):
            table.add_row(
                escape(item.category),
                item.size_human,
                item.modified.strftime("%Y-%m-%d"),
                escape(item.path + ("/" if item.is_directory else "")),
            )

        console.print(table)
        console.print(f"[{color}]Subtotal: {format_size(sum(i.size_bytes for i in items))}[/{color}]")
        console.print()

    if report.entries:
        console.print(
            Panel(
                f"[bold]Space found:[/bold] {format_size(report.total_bytes)} in {len(report.entries)} entries\n"
                "[dim]Directories and files inside them are both listed, so this total can over-count.[/dim]",
                title="Summary",
                border_style="blue",
            )
        )

    show_errors(report.errors)


def show_errors(errors: list[str]) -> None:
    if not errors:
        return
    console.print(f"\n[yellow]{len(errors)} warning(s):[/yellow]")
    for error in errors:
        console.print(f"  [yellow]![/yellow] {escape(error)}")


def show_cleanup_preview(items: list[ProblemEntry], dry_run: bool = False) -> None:
    """Display cleanup preview."""
    if dry_run:
        console.print("[yellow]DRY RUN - No files will be deleted[/yellow]\n")

    table = Table(title="Cleanup Preview", show_header=True, header_style="bold")
    table.add_column("Category")
    table.add_column("Size", justify="right")
    table.add_column("Risk")
    table.add_column("Path")

    total = 0
    for item in items:
        table.add_row(escape(item.category), item.size_human, risk_label(item.risk_tier), escape(item.path))
        total += item.size_bytes

    console.print(table)
    console.print(f"\n[bold]Total to clean: {format_size(total)}[/bold]")


def show_cleanup_result(result: CleanupResult, disk_before: DiskUsage | None = None, disk_after: DiskUsage | None = None) -> None:
    """Display cleanup summary."""
    console.print()
    if result.success:
        console.print("[bold green]Cleanup Complete![/bold green]")
    else:
        console.print("[bold yellow]Cleanup finished with errors[/bold yellow]")
    console.print()

    table = Table(show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Space freed", format_size(result.bytes_freed))
    table.add_row("Items removed", str(result.entries_removed))
    if result.errors:
        table.add_row("[red]Failed[/red]", str(len(result.errors)))
    if disk_before and disk_after:
        table.add_row("Free space before", f"{disk_before.free_gb:.1f} GB")
        table.add_row("Free space after", f"[bold green]{disk_after.free_gb:.1f} GB[/bold green]")

    console.print(table)
    show_errors(result.errors)


def show_rules(rules: list[CleaningRule]) -> None:
    """Display the rule collection."""
    if not rules:
        console.print("[yellow]No rules defined.[/yellow]")
        return

    table = Table(title="Cleaning Rules", show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Schedule")
    table.add_column("Enabled", justify="center")
    table.add_column("Targets", justify="right")
    table.add_column("Min age")
    table.add_column("Last run")

    for rule in rules:
        table.add_row(
            rule.id[:8],
            escape(rule.name),
            rule.schedule.value,
            "[green]yes[/green]" if rule.is_enabled else "[dim]no[/dim]",
            str(len(rule.targets)),
            _describe_criterion_age(rule),
            rule.last_run.strftime("%Y-%m-%d %H:%M") if rule.last_run else "never",
        )

    console.print(table)


def show_rule(rule: CleaningRule) -> None:
    """Display one rule with all of its targets."""
    state = "[green]enabled[/green]" if rule.is_enabled else "[dim]disabled[/dim]"
    console.print(
        Panel(
            f"[bold]{escape(rule.name)}[/bold] ({state})\n"
            f"{escape(rule.description)}\n"
            f"Schedule: {rule.schedule.value}   Last run: "
            f"{rule.last_run.strftime('%Y-%m-%d %H:%M') if rule.last_run else 'never'}\n"
            f"[dim]{rule.id}[/dim]",
            border_style="blue",
        )
    )

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Path")
    table.add_column("Pattern")
    table.add_column("Min size", justify="right")
    table.add_column("Min age")
    table.add_column("Action")

    for index, target in enumerate(rule.targets, start=1):
        criterion = target.criterion
        table.add_row(
            str(index),
            escape(target.path),
            escape(criterion.pattern) if criterion.pattern else "-",
            format_size(criterion.size_threshold) if criterion.size_threshold is not None else "-",
            str(criterion.age_threshold) if criterion.age_threshold is not None else "-",
            target.action.label,
        )

    console.print(table)


def show_rule_result(result: RuleExecutionResult) -> None:
    """Display result of a single rule execution."""
    if result.succeeded:
        console.print(
            f"  [green]✓[/green] {escape(result.rule_name)}: {result.files_processed} processed, "
            f"{format_size(result.space_freed)} freed"
        )
    else:
        console.print(
            f"  [yellow]![/yellow] {escape(result.rule_name)}: {result.files_processed} processed, "
            f"{format_size(result.space_freed)} freed, {len(result.errors)} error(s)"
        )
        for error in result.errors:
            console.print(f"      [dim]{escape(error)}[/dim]")


def show_locations(locations: list[ScanLocation]) -> None:
    """Display scan locations."""
    if not locations:
        console.print("[yellow]No scan locations configured.[/yellow]")
        return

    table = Table(title="Scan Locations", show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Path")
    table.add_column("Categories")
    table.add_column("Enabled", justify="center")

    for loc in locations:
        table.add_row(
            loc.id[:8],
            escape(loc.name),
            escape(loc.path),
            escape(", ".join(loc.categories)) or "-",
            "[green]yes[/green]" if loc.is_enabled else "[dim]no[/dim]",
        )

    console.print(table)


def show_status(disk_usage: DiskUsage, trend: UsageTrend | None = None) -> None:
    """Display quick status."""
    used_percent = disk_usage.used_percent

    if used_percent >= 90:
        status = "[red]CRITICAL[/red]"
    elif used_percent >= 75:
        status = "[yellow]WARNING[/yellow]"
    else:
        status = "[green]OK[/green]"

    console.print(f"Disk Status: {status}")
    console.print(f"  Total: {disk_usage.total_gb:.0f} GB")
    console.print(f"  Used:  {disk_usage.used_gb:.0f} GB ({used_percent:.0f}%)")
    console.print(f"  Free:  {disk_usage.free_gb:.0f} GB")
    if trend is not None:
        console.print(f"  Trend: {trend.description}")


def show_scanning_progress(disable: bool = False) -> Progress:
    """Create progress bar for scanning."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TimeElapsedColumn(),
        console=console,
        disable=disable,
    )


def confirm_action(message: str) -> bool:
    """Ask for confirmation."""
    from rich.prompt import Confirm

    return Confirm.ask(message)
