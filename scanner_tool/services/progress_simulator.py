"""Background driver that plays out a single scan job."""

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Awaitable, Callable, Optional

from ..errors import SimulatedFailure
from ..models.job import JobState, JobStatus, ScanJob, ScanResult
from . import scan_output

logger = logging.getLogger(__name__)

HARDWARE_FAULTS = (
    "Scanner hardware error",
    "Paper jam in document feeder",
    "Scan head stalled",
    "Lamp failure",
    "Lost connection to scanner during transfer",
)

Mutation = Callable[[ScanJob], None]
ApplyFn = Callable[[Mutation], Awaitable[bool]]


@dataclass
class DriverTiming:
    duration_min: float = 3.0
    duration_max: float = 8.0
    steps: int = 20
    jitter: float = 0.2
    processing_threshold: float = 0.8
    failure_probability: float = 0.05

    def __post_init__(self):
        if self.duration_min < 0 or self.duration_max < self.duration_min:
            raise ValueError("job duration range is invalid")
        if self.steps < 1:
            raise ValueError("a job needs at least one step")
        if not 0 <= self.jitter < 1:
            raise ValueError("step jitter must be in [0, 1)")


def advance(progress: float, threshold: float) -> Mutation:
    def mutate(job: ScanJob) -> None:
        job.progress = max(job.progress, min(progress, 1.0))
        if job.progress >= threshold and job.status.state is JobState.SCANNING:
            job.status = JobStatus.of(JobState.PROCESSING)
    return mutate


def complete(result: ScanResult) -> Mutation:
    def mutate(job: ScanJob) -> None:
        job.status = JobStatus.of(JobState.COMPLETED)
        job.progress = 1.0
        job.scan_result = result
        job.completed_at = datetime.now(tz=timezone.utc)
    return mutate


def fail(reason: str, simulated: bool) -> Mutation:
    def mutate(job: ScanJob) -> None:
        job.status = JobStatus.failed(reason, simulated=simulated)
        job.completed_at = datetime.now(tz=timezone.utc)
    return mutate


class ProgressSimulator:
    """Advances one job's progress and decides how it ends.

    The total duration is drawn once, split into ``steps`` jittered delays
    and rescaled so the delays add up to the drawn total. The terminal
    outcome is drawn at the last step boundary, before progress reaches 1.0,
    so a failed job never reports full progress.
    """

    def __init__(
        self,
        job: ScanJob,
        timing: DriverTiming,
        output_dir: Path,
        rng: Optional[random.Random] = None,
        write_artifacts: bool = True,
        reasons: tuple[str, ...] = HARDWARE_FAULTS,
    ):
        self.job = job
        self.timing = timing
        self.output_dir = output_dir
        self.rng = rng or random.Random()
        self.write_artifacts = write_artifacts
        self.reasons = reasons

    def step_delays(self) -> list[float]:
        t = self.timing
        total = self.rng.uniform(t.duration_min, t.duration_max)
        base = total / t.steps
        delays = [base * (1 + self.rng.uniform(-t.jitter, t.jitter)) for _ in range(t.steps)]
        scale = total / sum(delays) if sum(delays) > 0 else 0.0
        return [d * scale for d in delays]

    def check_outcome(self) -> None:
        """Raise SimulatedFailure with the configured probability."""
        if self.rng.random() < self.timing.failure_probability:
            raise SimulatedFailure(self.rng.choice(self.reasons))

    async def _wait(self, cancelled: asyncio.Event, delay: float) -> bool:
        try:
            await asyncio.wait_for(cancelled.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass
        return cancelled.is_set()

    async def run(self, cancelled: asyncio.Event, apply: ApplyFn) -> None:
        """Drive the job until it ends or ``cancelled`` is set.

        ``apply`` performs a locked update of the stored job and returns
        False once the job no longer accepts driver updates.
        """
        job = self.job
        started = time.monotonic()
        delays = self.step_delays()
        steps = len(delays)
        logger.info(f"Job {job.id}: scanning for {sum(delays):.2f}s in {steps} steps")

        try:
            for step, delay in enumerate(delays, start=1):
                if await self._wait(cancelled, delay):
                    logger.info(f"Job {job.id}: driver stopped at step {step - 1}/{steps}")
                    return
                if step < steps:
                    if not await apply(advance(step / steps, self.timing.processing_threshold)):
                        return
                    continue

                if (steps - 1) / steps < self.timing.processing_threshold:
                    if not await apply(advance((steps - 1) / steps, 0.0)):
                        return
                self.check_outcome()
                result = scan_output.build_result(job, self.output_dir, time.monotonic() - started)
                if self.write_artifacts:
                    scan_output.write_artifact(job, result)
                if await apply(complete(result)):
                    logger.info(f"Job {job.id}: completed -> {result.file_path}")

        except SimulatedFailure as e:
            logger.warning(f"Job {job.id}: simulated failure: {e.message}")
            await apply(fail(e.message, simulated=True))
        except OSError as e:
            logger.error(f"Job {job.id}: could not write scan output: {e}")
            await apply(fail(f"Failed to write scan output: {e}", simulated=False))
        except Exception as e:
            logger.exception(f"Job {job.id}: driver crashed")
            await apply(fail(f"Internal error: {e}", simulated=False))
