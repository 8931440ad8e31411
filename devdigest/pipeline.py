"""
Newsletter pipeline - one end-to-end cycle.

    providers --(concurrent fetch)--> Aggregator --> Renderer --> Archiver
                                                         \
                                                          --> Dispatcher (RecipientStore snapshot)

Failure policy per stage:
- Provider failures are already fallback fragments; the cycle always has a digest
- Archive failure is logged and does not block dispatch
- Unreadable recipient store aborts the cycle (report.success is False)
- Individual recipient failures only show up in the dispatch report

run_cycle() is safe to call re-entrantly: a manual trigger overlapping a
scheduled one shares only the recipient store (internally serialized) and the
archive (atomic overwrite).
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from devdigest.content.providers import AiBodyProvider, ContentProvider, NewsHeadlineProvider
from devdigest.delivery.dispatcher import Dispatcher
from devdigest.delivery.models import DispatchReport
from devdigest.delivery.smtp import DeliveryTransport, SmtpTransport
from devdigest.digest.aggregator import Aggregator
from devdigest.digest.models import Digest
from devdigest.digest.renderer import Renderer, build_subject
from devdigest.errors import ArchiveError, RecipientStoreError
from devdigest.observability.logging import get_logger
from devdigest.observability.telemetry import counter, log_event, time_block
from devdigest.storage.archive import Archiver
from devdigest.storage.recipients import RecipientStore

logger = get_logger(__name__)


@dataclass
class CycleReport:
    """Outcome of one run_cycle() call."""

    cycle_date: date
    success: bool
    dispatch: DispatchReport = field(default_factory=DispatchReport)
    archived: bool = False
    archive_paths: list[str] = field(default_factory=list)
    fallback_sections: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def delivered(self) -> int:
        return self.dispatch.delivered

    @property
    def failed(self) -> int:
        return self.dispatch.failed

    def to_dict(self) -> dict[str, Any]:
        return {
            "cycle_date": self.cycle_date.isoformat(),
            "success": self.success,
            "delivered": self.delivered,
            "failed": self.failed,
            "failed_recipients": self.dispatch.failed_recipients,
            "archived": self.archived,
            "fallback_sections": self.fallback_sections,
            "error": self.error,
        }


class Pipeline:
    """Wires providers, aggregator, renderer, archiver, store and dispatcher."""

    def __init__(
        self,
        store: RecipientStore,
        dispatcher: Dispatcher,
        providers: Sequence[ContentProvider] | None = None,
        aggregator: Aggregator | None = None,
        renderer: Renderer | None = None,
        archiver: Archiver | None = None,
        clock: Callable[[], date] = date.today,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.providers = list(providers) if providers is not None else default_providers(clock)
        self.aggregator = aggregator or Aggregator()
        self.renderer = renderer or Renderer(clock=clock)
        self.archiver = archiver or Archiver()
        self.clock = clock

    async def build_digest(self, cycle_date: date) -> Digest:
        """Fetch, aggregate and render. Never raises for provider or markup problems."""
        fragments = await self.aggregator.collect(self.providers)
        ordered = self.aggregator.order(fragments)
        source = self.aggregator.aggregate(ordered)
        html = self.renderer.render(source, today=cycle_date)
        return Digest(
            cycle_date=cycle_date,
            subject=build_subject(cycle_date),
            source=source,
            html=html,
            text=self.renderer.render_text(html),
            fragments=ordered,
        )

    async def run_cycle(self, today: date | None = None) -> CycleReport:
        """
        Run aggregate -> render -> archive -> dispatch once.

        Returns:
            CycleReport. ``success`` is False only when the cycle could not run
            at all (recipient store unreadable); per-recipient failures still
            count as a successful cycle.
        """
        cycle_date = today or self.clock()
        logger.info("Starting newsletter cycle for %s", cycle_date.isoformat())
        counter("cycle.started")

        with time_block("cycle.latency"):
            digest = await self.build_digest(cycle_date)
            report = CycleReport(
                cycle_date=cycle_date,
                success=True,
                fallback_sections=digest.fallback_sections,
            )

            try:
                result = await self.archiver.archive(cycle_date, digest)
            except ArchiveError as e:
                logger.error("Archive failed (continuing with delivery): %s", e)
            else:
                report.archived = True
                report.archive_paths = [str(result.source_path), str(result.html_path)]

            try:
                recipients = await self.store.list_ordered()
            except RecipientStoreError as e:
                logger.error("Cannot read subscribers, aborting cycle: %s", e)
                counter("cycle.failed")
                report.success = False
                report.error = str(e)
                return report

            if not recipients:
                logger.info("No subscribers to send the newsletter to.")
            else:
                report.dispatch = await self.dispatcher.dispatch(digest, recipients)

        counter("cycle.completed")
        log_event(
            "cycle.completed",
            cycle_date=cycle_date.isoformat(),
            delivered=report.delivered,
            failed=report.failed,
            archived=report.archived,
            fallback_sections=report.fallback_sections,
        )
        return report


def default_providers(clock: Callable[[], date] = date.today) -> list[ContentProvider]:
    return [NewsHeadlineProvider(), AiBodyProvider(clock=clock)]


def build_pipeline(
    store: RecipientStore | None = None,
    transport: DeliveryTransport | None = None,
) -> Pipeline:
    """Production wiring from environment configuration."""
    return Pipeline(
        store=store or RecipientStore(),
        dispatcher=Dispatcher(transport or SmtpTransport()),
    )
