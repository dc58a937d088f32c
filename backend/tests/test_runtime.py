"""
Runtime wiring: service container, scheduled jobs and the lifespan context.
"""
import sys
from pathlib import Path

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

backend_root = Path(__file__).resolve().parent.parent
if str(backend_root) not in sys.path:
    sys.path.insert(0, str(backend_root))

from runtime import build_core, lifespan, schedule_jobs
from safesign.services import InMemoryDocumentStore, MongoDocumentStore


class TestBuildCore:
    def test_services_share_store_and_registry(self):
        core = build_core(InMemoryDocumentStore())
        assert core.documents.store is core.store
        assert core.signing.store is core.store
        assert core.signing.documents is core.documents
        assert len(core.registry) == 6


class TestScheduleJobs:
    def test_memory_store_gets_snapshot_job(self, tmp_path):
        scheduler = AsyncIOScheduler()
        schedule_jobs(scheduler, build_core(InMemoryDocumentStore()), str(tmp_path / "s.json"))
        assert {job.id for job in scheduler.get_jobs()} == {"session_sweep", "document_expiry_sweep", "store_snapshot"}

    def test_mongo_store_has_no_snapshot_job(self, tmp_path):
        scheduler = AsyncIOScheduler()
        schedule_jobs(scheduler, build_core(MongoDocumentStore(db={})), str(tmp_path / "s.json"))
        assert {job.id for job in scheduler.get_jobs()} == {"session_sweep", "document_expiry_sweep"}


class TestLifespan:
    @pytest.mark.asyncio
    async def test_memory_backend_persists_on_shutdown(self, tmp_path):
        snapshot = tmp_path / "snapshot.json"
        async with lifespan(backend="memory", snapshot_path=str(snapshot)) as core:
            created = await core.documents.create_document("rentReceipt", "Q", "USR-1")
        assert snapshot.exists()

        async with lifespan(backend="memory", snapshot_path=str(snapshot)) as core:
            assert (await core.store.get(created.id)).title == "Q"

    @pytest.mark.asyncio
    async def test_unknown_backend(self, tmp_path):
        with pytest.raises(ValueError):
            async with lifespan(backend="sqlite", snapshot_path=str(tmp_path / "s.json")):
                pass
