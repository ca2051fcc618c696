"""
Client-side polling of report generation status.

A campaign repeatedly asks the status surface for one report until it sees a
terminal status, then delivers exactly one callback: the full record on
completion, or an error message on failure. Cancelled campaigns deliver nothing.
"""

import asyncio
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from backend.app.core.config import settings
from backend.app.services.lifecycle import ReportStatus

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Report generation is taking longer than expected. Please try again."
DEFAULT_FAILURE_MESSAGE = "Report generation failed"

_IN_PROGRESS = frozenset({
    ReportStatus.PROCESSING.value,
    ReportStatus.FETCHING_ENRICHMENT.value,
    ReportStatus.GENERATING_AI.value,
})


class StatusSource(Protocol):
    async def get_status(self, report_id: str) -> dict[str, Any]: ...

    async def get_report(self, report_id: str) -> dict[str, Any]: ...


CompletedCallback = Callable[[dict[str, Any]], Any]
FailedCallback = Callable[[str], Any]


@dataclass
class PollOutcome:
    """Terminal result of a campaign."""

    status: str
    record: dict[str, Any] | None = None
    error: str | None = None
    polls: int = 0


@dataclass
class PollCampaign:
    """One cancellable polling loop for one report."""

    poller: "StatusPoller"
    report_id: str
    on_completed: CompletedCallback | None = None
    on_failed: FailedCallback | None = None
    display_status: str = ReportStatus.PROCESSING.value
    polls: int = 0
    outcome: PollOutcome | None = None
    _task: asyncio.Task | None = field(default=None, repr=False)
    _cancelled: bool = field(default=False, repr=False)

    @property
    def done(self) -> bool:
        return self.outcome is not None or self._cancelled

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> "PollCampaign":
        self._task = asyncio.create_task(self._run(), name=f"poll-{self.report_id}")
        return self

    def cancel(self) -> None:
        """Stop polling. No callback fires after this returns."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.debug(f"[POLLER] Campaign for {self.report_id} cancelled after {self.polls} polls")

    def retry(self) -> "PollCampaign":
        """Abandon this campaign and start a fresh one with the same callbacks."""
        self.cancel()
        return self.poller.start(self.report_id, self.on_completed, self.on_failed)

    async def wait(self) -> PollOutcome:
        """Wait until the campaign delivers or is cancelled."""
        if self._task is not None:
            try:
                await asyncio.shield(self._task)
            except asyncio.CancelledError:
                if not self._cancelled:
                    raise
        if self.outcome is not None:
            return self.outcome
        return PollOutcome(status="cancelled", polls=self.polls)

    async def _run(self) -> None:
        source = self.poller.client
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.poller.max_wait
        try:
            while True:
                self.polls += 1
                payload = await source.get_status(self.report_id)
                status = payload.get("status")

                if status == ReportStatus.COMPLETED.value:
                    record = await source.get_report(self.report_id)
                    await self._deliver(PollOutcome(ReportStatus.COMPLETED.value, record=record, polls=self.polls))
                    return
                if status == ReportStatus.FAILED.value:
                    message = payload.get("error") or DEFAULT_FAILURE_MESSAGE
                    await self._deliver(PollOutcome(ReportStatus.FAILED.value, error=message, polls=self.polls))
                    return
                if status not in _IN_PROGRESS:
                    raise ValueError(f"Unknown report status: {status!r}")

                self.display_status = status
                if loop.time() >= deadline:
                    logger.warning(f"[POLLER] Gave up on {self.report_id} after {self.polls} polls")
                    await self._deliver(PollOutcome(ReportStatus.FAILED.value, error=TIMEOUT_MESSAGE, polls=self.polls))
                    return
                await asyncio.sleep(self.poller.interval)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"[POLLER] Poll for {self.report_id} failed: {e}")
            await self._deliver(PollOutcome(
                ReportStatus.FAILED.value,
                error=str(e) or e.__class__.__name__,
                polls=self.polls,
            ))

    async def _deliver(self, outcome: PollOutcome) -> None:
        if self._cancelled or self.outcome is not None:
            return
        self.outcome = outcome
        self.display_status = outcome.status

        if outcome.status == ReportStatus.COMPLETED.value:
            callback, argument = self.on_completed, outcome.record
        else:
            callback, argument = self.on_failed, outcome.error
        if callback is None:
            return
        try:
            result = callback(argument)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(f"[POLLER] Callback for {self.report_id} raised")


class StatusPoller:
    """
    Starts polling campaigns against a status source.

    Args:
        client: Object exposing ``get_status`` and ``get_report``
        interval: Seconds between polls
        max_wait: Seconds before a campaign gives up as failed
    """

    def __init__(
        self,
        client: StatusSource,
        interval: float | None = None,
        max_wait: float | None = None,
    ):
        self.client = client
        self.interval = settings.poll_interval_seconds if interval is None else interval
        self.max_wait = settings.poll_timeout_seconds if max_wait is None else max_wait
        if self.interval < 0 or self.max_wait < 0:
            raise ValueError("interval and max_wait must not be negative")
        self._campaigns: dict[str, PollCampaign] = {}

    def start(
        self,
        report_id: str,
        on_completed: CompletedCallback | None = None,
        on_failed: FailedCallback | None = None,
    ) -> PollCampaign:
        """Begin polling a report, replacing any active campaign for it."""
        previous = self._campaigns.get(report_id)
        if previous is not None and not previous.done:
            previous.cancel()

        campaign = PollCampaign(self, report_id, on_completed, on_failed)
        self._campaigns[report_id] = campaign
        logger.debug(f"[POLLER] Polling {report_id} every {self.interval}s (max {self.max_wait}s)")
        return campaign.start()

    async def poll_until_terminal(self, report_id: str) -> PollOutcome:
        """Poll a report and return its terminal outcome."""
        return await self.start(report_id).wait()

    def cancel_all(self) -> None:
        for campaign in self._campaigns.values():
            campaign.cancel()
        self._campaigns.clear()
