"""
SafeSign runtime: configuration, logging, wiring and background jobs.

    async with lifespan() as core:
        doc = await core.documents.create_document("rentalContract", "Bail", owner_id)
"""
import os
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

# Load environment variables
ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

from database import database
from job_runner import run_session_sweep, run_document_expiry_sweep, run_store_snapshot
from safesign.services import (
    DocumentStore,
    DocumentService,
    InMemoryDocumentStore,
    SessionRegistry,
    SigningService,
)
from safesign.templates import build_default_registry
from safesign.templates.registry import TemplateRegistry

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "memory")  # memory | mongo
SNAPSHOT_PATH = os.getenv("SNAPSHOT_PATH", str(ROOT_DIR / "data" / "safesign_snapshot.json"))
SNAPSHOT_INTERVAL_SECONDS = int(os.getenv("SNAPSHOT_INTERVAL_SECONDS", "300"))
SESSION_SWEEP_INTERVAL_SECONDS = int(os.getenv("SESSION_SWEEP_INTERVAL_SECONDS", "300"))
EXPIRY_SWEEP_INTERVAL_SECONDS = int(os.getenv("EXPIRY_SWEEP_INTERVAL_SECONDS", "900"))

logger = logging.getLogger(__name__)


def configure_logging(level: str = LOG_LEVEL):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@dataclass
class SafeSignCore:
    store: DocumentStore
    registry: TemplateRegistry
    documents: DocumentService
    signing: SigningService
    sessions: SessionRegistry


def build_core(store: DocumentStore, registry: Optional[TemplateRegistry] = None) -> SafeSignCore:
    registry = registry or build_default_registry()
    documents = DocumentService(store, registry)
    return SafeSignCore(
        store=store,
        registry=registry,
        documents=documents,
        signing=SigningService(store, documents),
        sessions=SessionRegistry(),
    )


def schedule_jobs(scheduler: AsyncIOScheduler, core: SafeSignCore, snapshot_path: Optional[str] = None):
    """Register the periodic maintenance jobs on ``scheduler``."""
    scheduler.add_job(
        run_session_sweep,
        IntervalTrigger(seconds=SESSION_SWEEP_INTERVAL_SECONDS),
        args=[core.sessions],
        id="session_sweep",
        name="Expired Session Sweep",
        replace_existing=True
    )

    scheduler.add_job(
        run_document_expiry_sweep,
        IntervalTrigger(seconds=EXPIRY_SWEEP_INTERVAL_SECONDS),
        args=[core.documents],
        id="document_expiry_sweep",
        name="Overdue Document Expiry",
        replace_existing=True
    )

    # Only the in-memory store needs snapshots; Mongo persists every write
    if snapshot_path and isinstance(core.store, InMemoryDocumentStore):
        scheduler.add_job(
            run_store_snapshot,
            IntervalTrigger(seconds=SNAPSHOT_INTERVAL_SECONDS),
            args=[core.store, snapshot_path],
            id="store_snapshot",
            name="Document Store Snapshot",
            replace_existing=True
        )


@asynccontextmanager
async def lifespan(backend: str = STORAGE_BACKEND, snapshot_path: str = SNAPSHOT_PATH):
    """Start the core (store, services, scheduler) and tear it down on exit."""
    configure_logging()
    logger.info(f"Starting SafeSign core (storage: {backend})")

    if backend == "mongo":
        await database.connect()
        store = await database.document_store()
    elif backend == "memory":
        store = InMemoryDocumentStore()
        await store.load_snapshot(snapshot_path)
    else:
        raise ValueError(f"Unknown STORAGE_BACKEND: {backend}")

    core = build_core(store)
    scheduler = AsyncIOScheduler()
    schedule_jobs(scheduler, core, snapshot_path)
    scheduler.start()
    logger.info("Background job scheduler started")

    try:
        yield core
    finally:
        logger.info("Shutting down SafeSign core")
        scheduler.shutdown(wait=False)
        logger.info("Background job scheduler stopped")
        if isinstance(store, InMemoryDocumentStore):
            await run_store_snapshot(store, snapshot_path)
        if backend == "mongo":
            await database.close()
