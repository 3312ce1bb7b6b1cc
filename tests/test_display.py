"""Tests for display module."""

from datetime import datetime, timedelta
from io import StringIO
from unittest.mock import patch

import pytest
from rich.console import Console

from declutter.display import (
    confirm_action,
    risk_label,
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
from declutter.models import (
    CleaningRule,
    CleanupResult,
    DiskUsage,
    ProblemEntry,
    RiskTier,
    RuleExecutionResult,
    RuleTarget,
    ScanCriterion,
    ScanLocation,
    ScanReport,
)
from declutter.monitor import UsageTrend


@pytest.fixture
def output():
    buffer = StringIO()
    with patch("declutter.display.console", Console(file=buffer, width=200, color_system=None)):
        yield buffer


def _entry(path, size, risk=RiskTier.LOW):
    return ProblemEntry(
        path=path,
        name=path.rsplit("/", 1)[-1],
        size_bytes=size,
        modified=datetime(2024, 1, 1),
        category="Incomplete Downloads",
        risk_tier=risk,
    )


class TestRiskLabel:
    def test_colors(self):
        assert "green" in risk_label(RiskTier.LOW)
        assert "yellow" in risk_label(RiskTier.MEDIUM)
        assert "red" in risk_label(RiskTier.HIGH)


class TestShowReport:
    def test_groups_by_tier(self, output):
        report = ScanReport(
            entries=[_entry("/d/a.part", 5_000_000), _entry("/d/b.log", 1_000, RiskTier.MEDIUM)]
        )
        show_report(report)
        text = output.getvalue()
        assert "Low Risk" in text
        assert "Medium Risk" in text
        assert "/d/a.part" in text
        assert "5.0 MB" in text

    def test_brackets_in_path_are_literal(self, output):
        show_report(ScanReport(entries=[_entry("/tmp/dl/movie[/b].part", 5_000_000)]))
        assert "movie[/b].part" in output.getvalue()

    def test_empty(self, output):
        show_report(ScanReport())
        assert "Nothing wasteful found" in output.getvalue()

    def test_cancelled_banner(self, output):
        show_report(ScanReport(cancelled=True))
        assert "cancelled" in output.getvalue()

    def test_errors_listed(self, output):
        show_report(ScanReport(errors=["Path not found: /x"]))
        assert "Path not found: /x" in output.getvalue()


class TestShowErrors:
    def test_markup_in_error_is_literal(self, output):
        show_errors(["bad pattern [red]"])
        assert "[red]" in output.getvalue()

    def test_nothing_for_no_errors(self, output):
        show_errors([])
        assert output.getvalue() == ""


class TestCleanup:
    def test_preview_dry_run(self, output):
        show_cleanup_preview([_entry("/d/a.part", 2_000)], dry_run=True)
        text = output.getvalue()
        assert "DRY RUN" in text
        assert "2.0 KB" in text

    def test_result_with_disk(self, output):
        before = DiskUsage(total_bytes=100_000_000_000, used_bytes=60_000_000_000, free_bytes=40_000_000_000)
        after = DiskUsage(total_bytes=100_000_000_000, used_bytes=50_000_000_000, free_bytes=50_000_000_000)
        show_cleanup_result(CleanupResult(bytes_freed=10_000_000_000, entries_removed=3), before, after)
        text = output.getvalue()
        assert "Cleanup Complete" in text
        assert "10.0 GB" in text
        assert "50.0 GB" in text

    def test_result_with_errors(self, output):
        show_cleanup_result(CleanupResult(errors=["/x: Permission denied"]))
        text = output.getvalue()
        assert "finished with errors" in text
        assert "/x: Permission denied" in text


class TestRules:
    def test_brackets_in_rule_name_are_literal(self, output):
        rule = CleaningRule(name="[bold]Logs[/i]", targets=[RuleTarget(path="~/[x]")])
        show_rules([rule])
        show_rule(rule)
        show_rule_result(RuleExecutionResult(rule_id=rule.id, rule_name=rule.name))
        assert "[bold]Logs[/i]" in output.getvalue()

    def test_rules_table(self, output):
        rule = CleaningRule(
            name="Fragments",
            targets=[RuleTarget(path="~/Downloads", criterion=ScanCriterion(age_threshold=timedelta(days=7)))],
        )
        show_rules([rule])
        text = output.getvalue()
        assert "Fragments" in text
        assert rule.id[:8] in text
        assert "7d" in text
        assert "never" in text

    def test_no_rules(self, output):
        show_rules([])
        assert "No rules defined" in output.getvalue()

    def test_rule_detail_shows_pattern(self, output):
        rule = CleaningRule(
            name="Logs",
            targets=[RuleTarget(path="~/logs", criterion=ScanCriterion(pattern=r"\.log\.[0-9]+$"))],
        )
        show_rule(rule)
        text = output.getvalue()
        assert r"\.log\.[0-9]+$" in text
        assert "Move to Trash" in text

    def test_rule_result(self, output):
        show_rule_result(
            RuleExecutionResult(rule_id="1", rule_name="R", processed_paths=["/a"], errors=["oops"])
        )
        text = output.getvalue()
        assert "1 processed" in text
        assert "oops" in text


class TestLocations:
    def test_brackets_in_location_are_literal(self, output):
        show_locations([ScanLocation(name="[red]x[/blue]", path="/data/[/]")])
        text = output.getvalue()
        assert "[red]x[/blue]" in text
        assert "/data/[/]" in text

    def test_table(self, output):
        show_locations([ScanLocation(name="DL", path="/home/u/Downloads", categories=["Incomplete Downloads"])])
        text = output.getvalue()
        assert "/home/u/Downloads" in text
        assert "Incomplete Downloads" in text

    def test_empty(self, output):
        show_locations([])
        assert "No scan locations" in output.getvalue()


class TestShowStatus:
    @pytest.mark.parametrize("used, label", [(50, "OK"), (80, "WARNING"), (95, "CRITICAL")])
    def test_levels(self, output, used, label):
        usage = DiskUsage(total_bytes=100 * 10**9, used_bytes=used * 10**9, free_bytes=(100 - used) * 10**9)
        show_status(usage)
        assert label in output.getvalue()

    def test_trend(self, output):
        usage = DiskUsage(total_bytes=100, used_bytes=10, free_bytes=90)
        show_status(usage, UsageTrend.DECREASING)
        assert "Disk usage is decreasing" in output.getvalue()


class TestMisc:
    def test_progress_can_be_disabled(self):
        assert show_scanning_progress(disable=True).disable

    @patch("rich.prompt.Confirm.ask", return_value=True)
    def test_confirm(self, mock_ask):
        assert confirm_action("Sure?")
        mock_ask.assert_called_once_with("Sure?")
