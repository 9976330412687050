# reports/coordinator.py
import logging
import threading

from .summary import compute_analytics_summary

logger = logging.getLogger(__name__)


class AnalyticsCoordinator:
    """
    Keeps the most recently requested summary for one viewer

    Every pass takes a ticket when it starts. When it finishes it may only
    publish if no newer pass has started since; otherwise its result is
    dropped, so an older pass can never overwrite a newer one.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._generation = 0
        self._latest = None

    @property
    def latest(self):
        with self._lock:
            return self._latest

    def begin(self):
        """Start a pass and return its ticket"""
        with self._lock:
            self._generation += 1
            return self._generation

    def publish(self, ticket, summary):
        """
        Store summary if ticket belongs to the latest pass

        Returns:
            True if stored, False if a newer pass superseded it
        """
        with self._lock:
            if ticket != self._generation:
                logger.info(
                    f"Discarding stale {summary.period} summary (ticket {ticket}, latest {self._generation})"
                )
                return False
            self._latest = summary
            return True

    def refresh(self, period, now=None, parallel=False):
        """
        Recompute the summary for period

        Call this whenever the selected period or the underlying records
        change.

        Returns:
            The new AnalyticsSummary, or None if a newer refresh started
            before this one finished
        """
        ticket = self.begin()
        summary = compute_analytics_summary(period, now=now, parallel=parallel)
        if self.publish(ticket, summary):
            return summary
        return None


_coordinators = {}
_coordinators_lock = threading.Lock()


def get_coordinator(key):
    """Coordinator shared by every request with the same key (e.g. a user id)"""
    with _coordinators_lock:
        coordinator = _coordinators.get(key)
        if coordinator is None:
            coordinator = _coordinators[key] = AnalyticsCoordinator()
        return coordinator
