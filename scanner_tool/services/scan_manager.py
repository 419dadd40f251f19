"""Scan job lifecycle and async orchestration."""

import asyncio
import logging
import random
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from ..config import Settings, settings
from ..errors import InvalidSettings, InvalidTransition, NotFound, ScannerToolError
from ..models.job import (
    DocumentType,
    JobState,
    JobStatus,
    ScanJob,
    ScanResult,
    ScanSettings,
)
from ..models.scanner import PaperKind, Scanner
from ..utils.desktop import current_system
from .progress_simulator import DriverTiming, Mutation, ProgressSimulator
from .scanner_registry import ScannerRegistry
from .seed import SEED_SCANNERS
from .simulators import ConnectionTester, EventSimulator

logger = logging.getLogger(__name__)

QUALITY_RANGE = (10, 100)


def validate_settings(scanner: Scanner, scan_settings: ScanSettings) -> None:
    """Raise InvalidSettings unless the scanner can honor these settings."""
    caps = scanner.capabilities
    if scan_settings.resolution <= 0:
        raise InvalidSettings("Resolution must be a positive DPI value")
    if scan_settings.resolution > caps.max_resolution:
        raise InvalidSettings(
            f"Resolution {scan_settings.resolution} DPI exceeds the scanner maximum "
            f"of {caps.max_resolution} DPI"
        )
    if scan_settings.color_mode not in caps.color_modes:
        raise InvalidSettings(f"Color mode {scan_settings.color_mode.value} is not supported")

    paper = scan_settings.paper_size
    if paper.kind is PaperKind.CUSTOM:
        if paper.width <= 0 or paper.height <= 0:
            raise InvalidSettings("Custom paper size needs positive dimensions")
    elif paper not in caps.paper_sizes:
        raise InvalidSettings(f"Paper size {paper.kind.value} is not supported")

    if scan_settings.duplex and not caps.has_duplex:
        raise InvalidSettings("Scanner does not support duplex scanning")
    low, high = QUALITY_RANGE
    if not low <= scan_settings.quality <= high:
        raise InvalidSettings(f"Quality must be between {low} and {high}")


@dataclass
class _JobSlot:
    job: ScanJob
    lock: threading.Lock = field(default_factory=threading.Lock)
    cancelled: Optional[asyncio.Event] = None
    task: Optional[asyncio.Task] = None
    cancelling: bool = False


class ScanJobManager:
    def __init__(
        self,
        registry: ScannerRegistry,
        timing: Optional[DriverTiming] = None,
        output_dir: Path = settings.output_dir,
        write_artifacts: bool = True,
        rng: Optional[random.Random] = None,
        history_limit: Optional[int] = None,
    ):
        self.registry = registry
        self.timing = timing or DriverTiming()
        self.output_dir = output_dir
        self.write_artifacts = write_artifacts
        self.history_limit = history_limit
        self._rng = rng or random.Random()
        self._jobs: dict[str, _JobSlot] = {}
        self._jobs_lock = threading.Lock()
        self._finished: deque[str] = deque()
        self._progress_listeners: dict[str, list[Callable]] = {}

    def _slot(self, job_id: str) -> _JobSlot:
        with self._jobs_lock:
            slot = self._jobs.get(job_id)
        if slot is None:
            raise NotFound(f"Scan job {job_id} not found")
        return slot

    def _snapshot(self, slot: _JobSlot) -> ScanJob:
        with slot.lock:
            return slot.job.model_copy(deep=True)

    # -- commands ------------------------------------------------------------

    def create_job(
        self,
        scanner_id: str,
        document_type: DocumentType,
        scan_settings: ScanSettings,
    ) -> ScanJob:
        job = ScanJob(
            scanner_id=scanner_id,
            document_type=document_type,
            scan_settings=scan_settings.model_copy(deep=True),
        )

        def record(scanner: Scanner) -> None:
            validate_settings(scanner, job.scan_settings)
            with self._jobs_lock:
                self._jobs[job.id] = _JobSlot(job=job)

        # The record is inserted under the scanner lock, together with the claim.
        self.registry.claim(scanner_id, job.id, record)
        logger.info(f"Created job {job.id} ({document_type.value}) on scanner {scanner_id}")
        return job.model_copy(deep=True)

    async def start_job(self, job_id: str) -> None:
        slot = self._slot(job_id)
        with slot.lock:
            if slot.job.status.state is not JobState.PENDING:
                raise InvalidTransition(
                    f"Job {job_id} is {slot.job.status.state.value}, only pending jobs can start"
                )
            slot.job.status = JobStatus.of(JobState.SCANNING)
            slot.job.progress = 0.0
            snapshot = slot.job.model_copy(deep=True)
            slot.cancelled = asyncio.Event()
            driver = ProgressSimulator(
                snapshot,
                self.timing,
                self.output_dir,
                rng=self._rng,
                write_artifacts=self.write_artifacts,
            )
            slot.task = asyncio.create_task(
                driver.run(slot.cancelled, lambda mutate: self._apply(slot, mutate))
            )
        logger.info(f"Started job {job_id}")
        await self._notify_progress(snapshot)

    async def cancel_job(self, job_id: str) -> None:
        slot = self._slot(job_id)
        with slot.lock:
            if slot.job.is_terminal:
                raise InvalidTransition(
                    f"Job {job_id} already {slot.job.status.state.value}"
                )
            if slot.cancelling:
                raise InvalidTransition(f"Job {job_id} is already being cancelled")
            slot.cancelling = True
            task = slot.task

        if slot.cancelled is not None:
            slot.cancelled.set()
        if task is not None:
            # the driver wakes from its step wait and returns without touching the job
            await task

        await self._apply(slot, _mark_cancelled, force=True)
        logger.info(f"Cancelled job {job_id}")

    async def shutdown(self) -> None:
        """Cancel every running driver."""
        with self._jobs_lock:
            running = [job_id for job_id, s in self._jobs.items() if s.task and not s.task.done()]
        for job_id in running:
            try:
                await self.cancel_job(job_id)
            except ScannerToolError as e:
                logger.debug(f"Job {job_id} not cancelled on shutdown: {e.message}")

    # -- queries -------------------------------------------------------------

    def get_job(self, job_id: str) -> ScanJob:
        return self._snapshot(self._slot(job_id))

    def list_jobs(self) -> list[ScanJob]:
        with self._jobs_lock:
            slots = list(self._jobs.values())
        return sorted((self._snapshot(s) for s in slots), key=lambda j: j.created_at)

    def get_result(self, job_id: str) -> Optional[ScanResult]:
        return self.get_job(job_id).scan_result

    def active_count(self) -> int:
        return sum(1 for job in self.list_jobs() if not job.is_terminal)

    # -- listeners -----------------------------------------------------------

    def add_progress_listener(self, job_id: str, callback: Callable) -> None:
        self._progress_listeners.setdefault(job_id, []).append(callback)

    def remove_progress_listener(self, job_id: str, callback: Callable) -> None:
        listeners = self._progress_listeners.get(job_id, [])
        if callback in listeners:
            listeners.remove(callback)

    async def _notify_progress(self, job: ScanJob) -> None:
        listeners = list(self._progress_listeners.get(job.id, []))
        for cb in listeners:
            try:
                await cb(job)
            except Exception:
                logger.warning(f"Progress listener for job {job.id} failed", exc_info=True)

    # -- internals -----------------------------------------------------------

    async def _apply(self, slot: _JobSlot, mutate: Mutation, force: bool = False) -> bool:
        """Apply one atomic update to a live job, then notify listeners.

        Returns False without changes when the job is terminal, or when a
        cancellation is in progress and the caller is the driver.
        """
        with slot.lock:
            if slot.job.is_terminal or (slot.cancelling and not force):
                return False
            mutate(slot.job)
            snapshot = slot.job.model_copy(deep=True)

        if snapshot.is_terminal:
            self.registry.release(snapshot.scanner_id, snapshot.id)
            self._record_finished(snapshot.id)
        await self._notify_progress(snapshot)
        return True

    def _record_finished(self, job_id: str) -> None:
        with self._jobs_lock:
            self._finished.append(job_id)
            if self.history_limit is None:
                return
            while len(self._finished) > self.history_limit:
                evicted = self._finished.popleft()
                self._jobs.pop(evicted, None)
                self._progress_listeners.pop(evicted, None)
                logger.debug(f"Evicted finished job {evicted} from history")


def _mark_cancelled(job: ScanJob) -> None:
    job.status = JobStatus.of(JobState.CANCELLED)
    job.completed_at = datetime.now(tz=timezone.utc)


def build_scan_manager(cfg: Settings) -> ScanJobManager:
    """Wire a registry (seeded with the mock scanners) and a manager from settings."""
    rng = random.Random(cfg.random_seed)
    registry = ScannerRegistry(
        platform=cfg.platform or current_system(),
        tester=ConnectionTester(
            latency_min=cfg.connection_latency_min,
            latency_max=cfg.connection_latency_max,
            failure_probability=cfg.connection_failure_probability,
            rng=rng,
        ),
        events=EventSimulator(probability=cfg.event_probability, rng=rng),
        discovery_latency=cfg.discovery_latency,
        discovery_probability=cfg.discovery_probability,
        rng=rng,
    )
    registry.seed(SEED_SCANNERS)
    return ScanJobManager(
        registry,
        timing=DriverTiming(
            duration_min=cfg.job_duration_min,
            duration_max=cfg.job_duration_max,
            steps=cfg.job_steps,
            jitter=cfg.step_jitter,
            processing_threshold=cfg.processing_threshold,
            failure_probability=cfg.job_failure_probability,
        ),
        output_dir=cfg.output_dir,
        write_artifacts=cfg.write_artifacts,
        rng=rng,
        history_limit=cfg.job_history_limit,
    )


# Singleton
scan_manager = build_scan_manager(settings)
