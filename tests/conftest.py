"""Shared fixtures: a seeded registry and a manager with fast jobs."""

import asyncio
import random

import pytest

from scanner_tool.models.job import ScanJob
from scanner_tool.models.scanner import ScannerCapabilities, ScannerSpec, ScannerType, SystemType
from scanner_tool.services.progress_simulator import DriverTiming
from scanner_tool.services.scan_manager import ScanJobManager
from scanner_tool.services.scanner_registry import ScannerRegistry
from scanner_tool.services.seed import SEED_SCANNERS
from scanner_tool.services.simulators import ConnectionTester, EventSimulator


def fast_timing(**overrides) -> DriverTiming:
    params = dict(duration_min=0.02, duration_max=0.05, steps=20, failure_probability=0.0)
    params.update(overrides)
    return DriverTiming(**params)


def make_registry(seed: int = 7, **tester_overrides) -> ScannerRegistry:
    rng = random.Random(seed)
    tester = ConnectionTester(latency_min=0.0, latency_max=0.0, rng=rng, **tester_overrides)
    return ScannerRegistry(
        platform=SystemType.LINUX,
        tester=tester,
        events=EventSimulator(rng=rng),
        discovery_latency=0.0,
        rng=rng,
    )


@pytest.fixture
def registry() -> ScannerRegistry:
    reg = make_registry()
    reg.seed(SEED_SCANNERS)
    return reg


@pytest.fixture
def flatbed_id(registry) -> str:
    return registry.add(ScannerSpec(
        name="Test Flatbed",
        scanner_type=ScannerType.FLATBED,
        system_type=SystemType.LINUX,
        capabilities=ScannerCapabilities(max_resolution=1200, has_duplex=True),
    ))


@pytest.fixture
def manager(registry, tmp_path) -> ScanJobManager:
    return ScanJobManager(
        registry,
        timing=fast_timing(),
        output_dir=tmp_path / "out",
        rng=random.Random(42),
    )


async def wait_terminal(manager: ScanJobManager, job_id: str, timeout: float = 5.0) -> list[ScanJob]:
    """Poll until the job ends; returns every snapshot observed on the way."""
    seen = []
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        job = manager.get_job(job_id)
        seen.append(job)
        if job.is_terminal:
            return seen
        if loop.time() > deadline:
            raise AssertionError(f"job {job_id} still {job.status.state.value} after {timeout}s")
        await asyncio.sleep(0.002)
