import asyncio
import random
from concurrent.futures import ThreadPoolExecutor

import pytest

from scanner_tool.errors import (
    InvalidSettings,
    InvalidTransition,
    NotFound,
    RemovalBlocked,
    ScannerUnavailable,
)
from scanner_tool.models.job import DocumentType, JobState, OutputFormat, ScanSettings
from scanner_tool.models.scanner import (
    ColorMode,
    PaperKind,
    PaperSize,
    ScannerCapabilities,
    ScannerSpec,
    ScannerState,
    ScannerStatus,
    ScannerType,
    SystemType,
)
from scanner_tool.services.scan_manager import ScanJobManager

from conftest import fast_timing, wait_terminal


def _color_settings(**overrides) -> ScanSettings:
    params = dict(resolution=300, color_mode=ColorMode.COLOR, output_format=OutputFormat.PNG)
    params.update(overrides)
    return ScanSettings(**params)


@pytest.mark.asyncio
async def test_job_runs_to_completion(manager, registry, flatbed_id):
    job = manager.create_job(flatbed_id, DocumentType.TEXT, _color_settings())
    assert job.status.state is JobState.PENDING
    assert registry.get(flatbed_id).status.state is ScannerState.BUSY

    await manager.start_job(job.id)
    started = manager.get_job(job.id)
    assert started.status.state in (JobState.SCANNING, JobState.PROCESSING)

    seen = await wait_terminal(manager, job.id)
    final = seen[-1]

    assert final.status.state is JobState.COMPLETED
    assert final.progress == 1.0
    assert final.completed_at is not None
    assert final.scan_result.format is OutputFormat.PNG
    assert final.scan_result.pages >= 1
    assert final.scan_result.file_path.exists()
    assert registry.get(flatbed_id).status.is_available

    progress = [j.progress for j in seen]
    assert progress == sorted(progress)
    assert all(0.0 <= p <= 1.0 for p in progress)
    for snapshot in seen:
        assert (snapshot.scan_result is not None) == (snapshot.status.state is JobState.COMPLETED)
        assert (snapshot.progress == 1.0) == (snapshot.status.state is JobState.COMPLETED)
        if snapshot.status.state is JobState.SCANNING:
            assert snapshot.progress < 0.8


@pytest.mark.asyncio
async def test_processing_follows_scanning(manager, flatbed_id):
    states = []

    async def record(job):
        states.append(job.status.state)

    job = manager.create_job(flatbed_id, DocumentType.INVOICE, _color_settings())
    manager.add_progress_listener(job.id, record)
    await manager.start_job(job.id)
    await wait_terminal(manager, job.id)

    assert states[0] is JobState.SCANNING
    assert JobState.PROCESSING in states
    assert states.index(JobState.PROCESSING) > 0
    assert states[-1] is JobState.COMPLETED
    assert states.count(JobState.COMPLETED) == 1


@pytest.mark.asyncio
async def test_simulated_failure_is_marked_and_releases_scanner(registry, flatbed_id, tmp_path):
    manager = ScanJobManager(
        registry,
        timing=fast_timing(failure_probability=1.0),
        output_dir=tmp_path,
        rng=random.Random(1),
    )
    job = manager.create_job(flatbed_id, DocumentType.PHOTO, _color_settings())
    await manager.start_job(job.id)
    final = (await wait_terminal(manager, job.id))[-1]

    assert final.status.state is JobState.FAILED
    assert final.status.simulated is True
    assert final.status.reason
    assert final.progress < 1.0
    assert final.scan_result is None
    assert final.completed_at is not None
    assert registry.get(flatbed_id).status.is_available


@pytest.mark.asyncio
async def test_output_write_error_is_not_simulated(registry, flatbed_id, tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x")
    manager = ScanJobManager(registry, timing=fast_timing(), output_dir=blocker)

    job = manager.create_job(flatbed_id, DocumentType.TEXT, _color_settings())
    await manager.start_job(job.id)
    final = (await wait_terminal(manager, job.id))[-1]

    assert final.status.state is JobState.FAILED
    assert final.status.simulated is False
    assert "Failed to write scan output" in final.status.reason
    assert registry.get(flatbed_id).status.is_available


@pytest.mark.asyncio
async def test_failure_fraction_matches_configured_probability(registry, flatbed_id, tmp_path):
    manager = ScanJobManager(
        registry,
        timing=fast_timing(duration_min=0.0, duration_max=0.0, steps=1, failure_probability=0.05),
        output_dir=tmp_path,
        write_artifacts=False,
        rng=random.Random(2024),
    )
    failed = 0
    runs = 1000
    for _ in range(runs):
        job = manager.create_job(flatbed_id, DocumentType.TEXT, _color_settings())
        await manager.start_job(job.id)
        final = (await wait_terminal(manager, job.id))[-1]
        assert final.status.state in (JobState.COMPLETED, JobState.FAILED)
        failed += final.status.state is JobState.FAILED

    assert 0.03 <= failed / runs <= 0.07


def test_create_job_unknown_scanner(manager):
    with pytest.raises(NotFound):
        manager.create_job("missing", DocumentType.TEXT, ScanSettings())
    assert manager.list_jobs() == []


@pytest.mark.parametrize("status", [
    ScannerStatus.busy(),
    ScannerStatus.offline(),
    ScannerStatus.error("Cover open"),
])
def test_create_job_on_unavailable_scanner(manager, registry, flatbed_id, status):
    slot = registry._slot(flatbed_id)
    with slot.lock:
        slot.scanner.status = status

    with pytest.raises(ScannerUnavailable):
        manager.create_job(flatbed_id, DocumentType.TEXT, ScanSettings())
    assert manager.list_jobs() == []


@pytest.mark.parametrize("settings", [
    ScanSettings(resolution=2400),
    ScanSettings(resolution=0),
    ScanSettings(quality=5),
    ScanSettings(quality=101),
    ScanSettings(paper_size=PaperSize.custom(-5, 100)),
])
def test_create_job_rejects_settings_beyond_capabilities(manager, registry, flatbed_id, settings):
    with pytest.raises(InvalidSettings):
        manager.create_job(flatbed_id, DocumentType.TEXT, settings)
    assert manager.list_jobs() == []
    assert registry.get(flatbed_id).status.is_available


def test_create_job_checks_modes_paper_and_duplex(manager, registry):
    scanner_id = registry.add(ScannerSpec(
        name="Receipt Wand",
        scanner_type=ScannerType.HANDHELD,
        system_type=SystemType.LINUX,
        capabilities=ScannerCapabilities(
            max_resolution=600,
            color_modes=[ColorMode.GRAYSCALE],
            paper_sizes=[PaperSize(kind=PaperKind.LETTER)],
            has_duplex=False,
        ),
    ))
    letter = PaperSize(kind=PaperKind.LETTER)

    with pytest.raises(InvalidSettings):
        manager.create_job(scanner_id, DocumentType.RECEIPT, ScanSettings(
            color_mode=ColorMode.COLOR, paper_size=letter))
    with pytest.raises(InvalidSettings):
        manager.create_job(scanner_id, DocumentType.RECEIPT, ScanSettings(
            color_mode=ColorMode.GRAYSCALE))  # A4
    with pytest.raises(InvalidSettings):
        manager.create_job(scanner_id, DocumentType.RECEIPT, ScanSettings(
            color_mode=ColorMode.GRAYSCALE, paper_size=letter, duplex=True))

    job = manager.create_job(scanner_id, DocumentType.RECEIPT, ScanSettings(
        color_mode=ColorMode.GRAYSCALE, paper_size=PaperSize.custom(80, 200)))
    assert job.scan_settings.paper_size.width == 80


def test_concurrent_create_job_claims_once(manager, flatbed_id):
    def attempt(_):
        try:
            return manager.create_job(flatbed_id, DocumentType.TEXT, ScanSettings())
        except ScannerUnavailable as e:
            return e

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(attempt, range(8)))

    created = [o for o in outcomes if not isinstance(o, Exception)]
    assert len(created) == 1
    assert all(isinstance(o, ScannerUnavailable) for o in outcomes if o is not created[0])
    assert len(manager.list_jobs()) == 1


@pytest.mark.asyncio
async def test_start_job_only_from_pending(manager, flatbed_id):
    with pytest.raises(NotFound):
        await manager.start_job("missing")

    job = manager.create_job(flatbed_id, DocumentType.TEXT, ScanSettings())
    await manager.start_job(job.id)
    with pytest.raises(InvalidTransition):
        await manager.start_job(job.id)
    await wait_terminal(manager, job.id)


@pytest.mark.asyncio
async def test_cancel_during_scanning(registry, flatbed_id, tmp_path):
    manager = ScanJobManager(
        registry,
        timing=fast_timing(duration_min=2.0, duration_max=2.0),
        output_dir=tmp_path,
    )
    job = manager.create_job(flatbed_id, DocumentType.CONTRACT, ScanSettings())
    await manager.start_job(job.id)
    await asyncio.sleep(0.25)

    before = manager.get_job(job.id)
    assert before.status.state is JobState.SCANNING
    assert 0.0 < before.progress < 0.8

    loop = asyncio.get_running_loop()
    t0 = loop.time()
    await manager.cancel_job(job.id)
    assert loop.time() - t0 < 0.1  # the driver wakes up as soon as it is signalled

    cancelled = manager.get_job(job.id)
    assert cancelled.status.state is JobState.CANCELLED
    assert cancelled.completed_at is not None
    assert cancelled.scan_result is None
    assert registry.get(flatbed_id).status.is_available

    await asyncio.sleep(0.3)
    assert manager.get_job(job.id).progress == cancelled.progress


@pytest.mark.asyncio
async def test_cancel_pending_job(manager, registry, flatbed_id):
    job = manager.create_job(flatbed_id, DocumentType.TEXT, ScanSettings())
    await manager.cancel_job(job.id)

    assert manager.get_job(job.id).status.state is JobState.CANCELLED
    assert registry.get(flatbed_id).status.is_available
    with pytest.raises(InvalidTransition):
        await manager.start_job(job.id)


@pytest.mark.asyncio
async def test_cancel_terminal_job_is_rejected(manager, flatbed_id):
    job = manager.create_job(flatbed_id, DocumentType.TEXT, ScanSettings())
    await manager.start_job(job.id)
    final = (await wait_terminal(manager, job.id))[-1]

    with pytest.raises(InvalidTransition):
        await manager.cancel_job(job.id)
    assert manager.get_job(job.id) == final

    with pytest.raises(NotFound):
        await manager.cancel_job("missing")


@pytest.mark.asyncio
async def test_remove_scanner_blocked_by_live_job(manager, registry, flatbed_id):
    job = manager.create_job(flatbed_id, DocumentType.TEXT, ScanSettings())
    with pytest.raises(RemovalBlocked):
        registry.remove(flatbed_id)

    await manager.start_job(job.id)
    with pytest.raises(RemovalBlocked):
        registry.remove(flatbed_id)

    await wait_terminal(manager, job.id)
    registry.remove(flatbed_id)


@pytest.mark.asyncio
async def test_events_never_touch_a_claimed_scanner(manager, registry, flatbed_id):
    registry.events.probability = 1.0
    registry.events.weights = (0.0, 0.0, 0.0, 1.0)

    job = manager.create_job(flatbed_id, DocumentType.TEXT, ScanSettings())
    await manager.start_job(job.id)
    while not manager.get_job(job.id).is_terminal:
        registry.simulate_events()
        if not manager.get_job(job.id).is_terminal:
            assert registry.get(flatbed_id).status.state is ScannerState.BUSY
        await asyncio.sleep(0.002)

    assert registry.get(flatbed_id).status.is_available


@pytest.mark.asyncio
async def test_get_result_and_active_count(manager, flatbed_id):
    job = manager.create_job(flatbed_id, DocumentType.TEXT, ScanSettings())
    assert manager.active_count() == 1
    assert manager.get_result(job.id) is None

    await manager.start_job(job.id)
    await wait_terminal(manager, job.id)

    assert manager.active_count() == 0
    assert manager.get_result(job.id).format is OutputFormat.PDF
    with pytest.raises(NotFound):
        manager.get_result("missing")


@pytest.mark.asyncio
async def test_history_limit_evicts_oldest_finished(registry, flatbed_id, tmp_path):
    manager = ScanJobManager(
        registry,
        timing=fast_timing(),
        output_dir=tmp_path,
        write_artifacts=False,
        history_limit=2,
    )
    ids = []
    for _ in range(3):
        job = manager.create_job(flatbed_id, DocumentType.TEXT, ScanSettings())
        await manager.cancel_job(job.id)
        ids.append(job.id)

    assert [j.id for j in manager.list_jobs()] == ids[1:]
    with pytest.raises(NotFound):
        manager.get_job(ids[0])


@pytest.mark.asyncio
async def test_shutdown_stops_running_jobs(manager, registry, flatbed_id):
    manager.timing = fast_timing(duration_min=5.0, duration_max=5.0)
    job = manager.create_job(flatbed_id, DocumentType.TEXT, ScanSettings())
    await manager.start_job(job.id)

    await manager.shutdown()

    assert manager.get_job(job.id).status.state is JobState.CANCELLED
    assert registry.get(flatbed_id).status.is_available
