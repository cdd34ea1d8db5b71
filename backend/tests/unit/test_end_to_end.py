"""Scheduler -> processor -> ingestor against in-memory stores."""

from __future__ import annotations

import asyncio

from conftest import FakeJobStore, MemoryStorage, RecordingSink, make_job, make_rows, xlsx_bytes
from lead_importer.db.models.import_job import JobState
from lead_importer.services.job_processor import JobProcessor
from lead_importer.workers.scheduler import Scheduler


def test_1200_row_sheet_imports_in_three_ordered_batches(settings):
    store = FakeJobStore([make_job("job-1", file_path="imports/leads.xlsx")])
    storage = MemoryStorage({("uploads", "imports/leads.xlsx"): xlsx_bytes(make_rows(1200))})
    sink = RecordingSink()
    processor = JobProcessor(store, storage, sink, settings)
    scheduler = Scheduler(store, processor, settings, max_iterations=1)

    stats = asyncio.run(scheduler.run())

    assert [len(batch) for batch in sink.batches] == [500, 500, 200]
    assert [r["lead_id"] for r in sink.committed] == [f"L{i}" for i in range(1200)]
    assert store.jobs["job-1"].status == JobState.DONE.value
    assert store.mutations == [("job-1", "processing"), ("job-1", "done")]
    assert stats.done == 1


def test_failed_job_does_not_block_the_next_one(settings):
    settings.poll_interval = 0
    store = FakeJobStore(
        [
            make_job("broken", file_path="missing.xlsx", minutes=0),
            make_job("good", file_path="leads.csv", minutes=1),
        ]
    )
    storage = MemoryStorage({("uploads", "leads.csv"): b"id,email\nL1,a@example.com\n"})
    sink = RecordingSink()
    scheduler = Scheduler(store, JobProcessor(store, storage, sink, settings), settings, max_iterations=3)

    stats = asyncio.run(scheduler.run())

    assert store.jobs["broken"].status == JobState.FAILED.value
    assert store.jobs["broken"].error == "File download failed"
    assert store.jobs["good"].status == JobState.DONE.value
    assert sink.committed[0]["email"] == "a@example.com"
    assert (stats.claimed, stats.done, stats.failed, stats.errors) == (2, 1, 1, 0)
