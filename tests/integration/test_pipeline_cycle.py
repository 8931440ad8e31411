"""End-to-end newsletter cycle with fake providers and transport

Covers store -> aggregate -> render -> archive -> dispatch, plus the
per-stage failure policy (provider fallback, archive failure, unreadable store).
"""

from __future__ import annotations

import asyncio

from conftest import CYCLE_DATE, BrokenProvider, RecordingSleep, RecordingTransport, StaticProvider

from devdigest.delivery.dispatcher import Dispatcher, RetryPolicy
from devdigest.digest.renderer import Renderer
from devdigest.observability.telemetry import get_counter
from devdigest.pipeline import Pipeline
from devdigest.storage.archive import Archiver


def build(store, tmp_path, transport=None, providers=None, archive_dir=None):
    transport = transport or RecordingTransport()
    pipeline = Pipeline(
        store=store,
        dispatcher=Dispatcher(
            transport,
            policy=RetryPolicy(max_attempts=3, base_delay=1.0, max_delay=60.0),
            attempt_timeout=None,
            sleep=RecordingSleep(),
        ),
        providers=providers
        if providers is not None
        else [
            StaticProvider("body", "## Weekly Trends\n\nTypes everywhere.", name="ai_body", delay=0.02),
            StaticProvider("news", "## Technology News\n\n### [Story](https://n.test/1)\nDesc", name="news"),
        ],
        renderer=Renderer(clock=lambda: CYCLE_DATE),
        archiver=Archiver(archive_dir or tmp_path / "archive"),
        clock=lambda: CYCLE_DATE,
    )
    return pipeline, transport


def subscribe(store, *addresses):
    async def _add():
        for address in addresses:
            await store.add(address)

    asyncio.run(_add())


def test_full_cycle_delivers_and_archives(store, tmp_path):
    subscribe(store, "a@x.com", "b@x.com")
    pipeline, transport = build(store, tmp_path)

    report = asyncio.run(pipeline.run_cycle())

    assert report.success
    assert report.delivered == 2
    assert report.failed == 0
    assert report.archived
    assert pipeline.archiver.list_snapshots() == [CYCLE_DATE]
    assert sorted(r for r, _ in transport.sent) == ["a@x.com", "b@x.com"]
    assert {subject for _, subject in transport.sent} == {"Development Newsletter - 2025-03-03"}

    source, html = pipeline.archiver.load(CYCLE_DATE)
    assert source.index("## Technology News") < source.index("## Weekly Trends")
    assert '<a href="https://n.test/1">Story</a>' in html
    assert get_counter("cycle.completed") == 1


def test_every_recipient_gets_identical_content(store, tmp_path):
    subscribe(store, "a@x.com", "b@x.com", "c@x.com")
    bodies = []

    class CapturingTransport(RecordingTransport):
        async def send(self, recipient, subject, html, text):
            bodies.append((subject, html, text))
            return await super().send(recipient, subject, html, text)

    pipeline, _ = build(store, tmp_path, transport=CapturingTransport())
    asyncio.run(pipeline.run_cycle())

    assert len(bodies) == 3
    assert len(set(bodies)) == 1


def test_provider_failure_still_delivers_with_fallback(store, tmp_path):
    subscribe(store, "a@x.com")
    providers = [
        BrokenProvider(ConnectionError("LLM quota exhausted")),
        StaticProvider("news", "## Technology News\n\nheadline", name="news"),
    ]
    pipeline, transport = build(store, tmp_path, providers=providers)

    report = asyncio.run(pipeline.run_cycle())

    assert report.success
    assert report.delivered == 1
    assert report.fallback_sections == ["body"]
    source, _ = pipeline.archiver.load(CYCLE_DATE)
    assert "Fallback text." in source


def test_one_bad_recipient_does_not_fail_cycle(store, tmp_path):
    subscribe(store, "a@x.com", "bad@x.com")
    pipeline, _ = build(store, tmp_path, transport=RecordingTransport(failures={"bad@x.com": -1}))

    report = asyncio.run(pipeline.run_cycle())

    assert report.success
    assert report.delivered == 1
    assert report.failed == 1
    assert report.to_dict()["failed_recipients"] == ["bad@x.com"]
    outcome = report.dispatch.outcome_for("bad@x.com")
    assert outcome.attempts == 3
    assert outcome.delays == (1.0, 2.0)


def test_no_subscribers_still_archives(store, tmp_path):
    pipeline, transport = build(store, tmp_path)

    report = asyncio.run(pipeline.run_cycle())

    assert report.success
    assert report.delivered == 0
    assert transport.calls == []
    assert pipeline.archiver.list_snapshots() == [CYCLE_DATE]


def test_archive_failure_does_not_block_delivery(store, tmp_path):
    subscribe(store, "a@x.com")
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file in the way")
    pipeline, _ = build(store, tmp_path, archive_dir=blocker)

    report = asyncio.run(pipeline.run_cycle())

    assert report.success
    assert not report.archived
    assert report.delivered == 1


def test_unreadable_store_aborts_cycle(store, store_path, tmp_path):
    store_path.write_text("{broken")
    pipeline, transport = build(store, tmp_path)

    report = asyncio.run(pipeline.run_cycle())

    assert not report.success
    assert "corrupt" in report.error
    assert transport.calls == []
    assert get_counter("cycle.failed") == 1


def test_rerun_same_day_overwrites_snapshot(store, tmp_path):
    pipeline, _ = build(store, tmp_path)

    asyncio.run(pipeline.run_cycle())
    asyncio.run(pipeline.run_cycle())

    assert pipeline.archiver.list_snapshots() == [CYCLE_DATE]
    assert len(list((tmp_path / "archive").iterdir())) == 2


def test_undecodable_store_aborts_cycle(store, store_path, tmp_path):
    store_path.write_bytes(b"\xff\xfe garbage")
    pipeline, transport = build(store, tmp_path)

    report = asyncio.run(pipeline.run_cycle())

    assert not report.success
    assert "corrupt" in report.error
    assert transport.calls == []
