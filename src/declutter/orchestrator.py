"""Background scanning across many scan locations."""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime

from declutter.categories import criterion_for_category, risk_for_category
from declutter.events import EventQueue
from declutter.exceptions import AccessResolutionError
from declutter.locations import LocationProvider, PathLocationProvider
from declutter.models import ScanLocation, ScanReport
from declutter.scanner import CancelToken, ScanFunction, scan_tree

log = logging.getLogger(__name__)


class ScanObserver:
    """Receives scan notifications; override the methods you need.

    Every method is called on the thread that drains the orchestrator's
    EventQueue, never on the scanning worker.
    """

    def on_scan_start(self) -> None:
        pass

    def on_scan_progress(self, fraction: float) -> None:
        pass

    def on_scan_finish(self, report: ScanReport) -> None:
        pass


class ScanOrchestrator:
    """Runs one scan at a time over a set of locations on a worker thread."""

    def __init__(
        self,
        provider: LocationProvider | None = None,
        observer: ScanObserver | None = None,
        events: EventQueue | None = None,
        scan_fn: ScanFunction = scan_tree,
    ) -> None:
        self.provider = provider or PathLocationProvider()
        self.observer = observer or ScanObserver()
        self.events = events or EventQueue()
        self._scan_fn = scan_fn
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="declutter-scan")
        self._lock = threading.Lock()
        self._scanning = False
        self._token: CancelToken | None = None
        self._delivered = threading.Event()
        self._delivered.set()
        self.last_report: ScanReport | None = None

    @property
    def is_scanning(self) -> bool:
        with self._lock:
            return self._scanning

    def start_scan(self, locations: list[ScanLocation]) -> Future | None:
        """Start scanning in the background.

        Returns:
            Future resolving to the merged ScanReport, or None when a scan is
            already running (the call is then ignored).
        """
        with self._lock:
            if self._scanning:
                log.debug("Scan already in progress, ignoring start request")
                return None
            self._scanning = True
            self._token = CancelToken()
            self._delivered.clear()
            token = self._token

        return self._executor.submit(self._run, list(locations), token)

    def cancel_scan(self) -> None:
        """Ask the running scan to stop at its next checkpoint; no-op when idle."""
        with self._lock:
            if self._token is not None and self._scanning:
                log.info("Cancelling scan")
                self._token.cancel()

    def wait(self, timeout: float | None = None) -> ScanReport | None:
        """Drain notifications on the calling thread until the scan is delivered."""
        if not self.events.run_until(self._delivered.is_set, timeout=timeout):
            return None
        return self.last_report

    def shutdown(self) -> None:
        self.cancel_scan()
        self._executor.shutdown(wait=True)

    def _run(self, locations: list[ScanLocation], token: CancelToken) -> ScanReport:
        report = ScanReport()
        try:
            self.events.post(self.observer.on_scan_start)
            self._scan_locations(locations, token, report)
        except Exception as e:
            log.exception("Scan failed unexpectedly")
            report.errors.append(f"Scan failed: {e}")
        finally:
            report.cancelled = token.cancelled
            report.finished_at = datetime.now()
            self.events.post(self._deliver, report)
            with self._lock:
                self._scanning = False
        return report

    def _scan_locations(self, locations: list[ScanLocation], token: CancelToken, report: ScanReport) -> None:
        enabled = [loc for loc in locations if loc.is_enabled]
        total = max(len(enabled), 1)

        for index, location in enumerate(enabled):
            if token.cancelled:
                break
            self.events.post(self.observer.on_scan_progress, index / total)

            try:
                root = self.provider.resolve_access(location)
            except (AccessResolutionError, OSError) as e:
                log.warning("Skipping location %s: %s", location.path, e)
                report.errors.append(f"{location.name}: {e}")
                continue

            primary = location.primary_category
            try:
                location_report = self._scan_fn(
                    root,
                    criterion_for_category(primary),
                    primary,
                    risk_for_category(primary),
                    recursive=True,
                    cancel_token=token,
                )
            except OSError as e:
                log.warning("Scanning location %s failed: %s", location.path, e)
                report.errors.append(f"{location.name}: {e}")
                continue
            report.extend(location_report)
            log.info("Location %s: %d matches", location.path, len(location_report.entries))

        if not token.cancelled:
            self.events.post(self.observer.on_scan_progress, 1.0)

    def _deliver(self, report: ScanReport) -> None:
        self.last_report = report
        try:
            self.observer.on_scan_finish(report)
        finally:
            self._delivered.set()
