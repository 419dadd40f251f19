"""Known scanners, their status, and which job currently holds each one."""

import asyncio
import logging
import random
import threading
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from ..errors import InvalidSettings, NotFound, RemovalBlocked, ScannerUnavailable
from ..models.scanner import (
    Scanner,
    ScannerCapabilities,
    ScannerSpec,
    ScannerState,
    ScannerStatus,
    SystemType,
)
from .seed import DISCOVERABLE_SCANNERS
from .simulators import ConnectionTester, EventSimulator

logger = logging.getLogger(__name__)


@dataclass
class _Slot:
    scanner: Scanner
    lock: threading.Lock = field(default_factory=threading.Lock)
    claimed_by: Optional[str] = None
    removed: bool = False


class ScannerRegistry:
    """Table of scanner records, one lock per record.

    ``_table_lock`` only guards inserting and removing slots; every status
    change (claims, connection tests, injected events) happens under the
    scanner's own lock.
    """

    def __init__(
        self,
        platform: SystemType,
        tester: Optional[ConnectionTester] = None,
        events: Optional[EventSimulator] = None,
        discovery_latency: float = 1.0,
        discovery_probability: float = 0.3,
        rng: Optional[random.Random] = None,
    ):
        self.platform = platform
        self.tester = tester or ConnectionTester()
        self.events = events or EventSimulator()
        self.discovery_latency = discovery_latency
        self.discovery_probability = discovery_probability
        self._rng = rng or random.Random()
        self._slots: dict[str, _Slot] = {}
        self._table_lock = threading.Lock()

    def seed(self, specs: Iterable[ScannerSpec]) -> None:
        for spec in specs:
            self.add(spec)

    # -- reads ---------------------------------------------------------------

    def _slot(self, scanner_id: str) -> _Slot:
        with self._table_lock:
            slot = self._slots.get(scanner_id)
        if slot is None:
            raise NotFound(f"Scanner {scanner_id} not found")
        return slot

    def _snapshot(self, slot: _Slot) -> Scanner:
        with slot.lock:
            return slot.scanner.model_copy(deep=True)

    def list_all(self) -> list[Scanner]:
        with self._table_lock:
            slots = list(self._slots.values())
        return [self._snapshot(s) for s in slots]

    def list_by_system(self, system_type: SystemType) -> list[Scanner]:
        return [s for s in self.list_all() if s.system_type == system_type]

    def get(self, scanner_id: str) -> Scanner:
        return self._snapshot(self._slot(scanner_id))

    def capabilities(self, scanner_id: str) -> ScannerCapabilities:
        return self.get(scanner_id).capabilities

    # -- records -------------------------------------------------------------

    def add(self, spec: ScannerSpec) -> str:
        name = spec.name.strip()
        caps = spec.capabilities
        if not name:
            raise InvalidSettings("Scanner name must not be empty")
        if caps.max_resolution <= 0:
            raise InvalidSettings("max_resolution must be a positive DPI value")
        if not caps.color_modes:
            raise InvalidSettings("Scanner must support at least one color mode")
        if not caps.paper_sizes:
            raise InvalidSettings("Scanner must support at least one paper size")
        for paper in caps.paper_sizes:
            width, height = paper.dimensions_mm
            if width <= 0 or height <= 0:
                raise InvalidSettings("Custom paper sizes need positive dimensions")

        scanner = Scanner(
            name=name,
            scanner_type=spec.scanner_type,
            system_type=spec.system_type,
            capabilities=ScannerCapabilities(
                max_resolution=caps.max_resolution,
                color_modes=list(dict.fromkeys(caps.color_modes)),
                paper_sizes=list(dict.fromkeys(caps.paper_sizes)),
                has_duplex=caps.has_duplex,
                has_adf=caps.has_adf,
            ),
        )
        with self._table_lock:
            self._slots[scanner.id] = _Slot(scanner=scanner)
        logger.info(f"Added scanner {scanner.name} ({scanner.id})")
        return scanner.id

    def remove(self, scanner_id: str) -> None:
        with self._table_lock:
            slot = self._slots.get(scanner_id)
            if slot is None:
                raise NotFound(f"Scanner {scanner_id} not found")
            with slot.lock:
                if slot.claimed_by is not None:
                    raise RemovalBlocked(
                        f"Scanner {slot.scanner.name} is in use by job {slot.claimed_by}"
                    )
                slot.removed = True
            del self._slots[scanner_id]
        logger.info(f"Removed scanner {slot.scanner.name} ({scanner_id})")

    def reset_status(self, scanner_id: str) -> None:
        slot = self._slot(scanner_id)
        with slot.lock:
            if slot.claimed_by is not None:
                logger.info(
                    f"Not resetting {slot.scanner.name}: claimed by job {slot.claimed_by}"
                )
                return
            slot.scanner.status = ScannerStatus.available()

    # -- claims --------------------------------------------------------------

    def claim(
        self,
        scanner_id: str,
        job_id: str,
        prepare: Callable[[Scanner], None],
    ) -> None:
        """Mark the scanner busy for ``job_id``.

        ``prepare`` runs under the scanner lock with a copy of the record
        before the claim is taken; if it raises, nothing is claimed.
        """
        slot = self._slot(scanner_id)
        with slot.lock:
            if slot.removed:
                raise NotFound(f"Scanner {scanner_id} not found")
            scanner = slot.scanner
            if not scanner.status.is_available:
                raise ScannerUnavailable(
                    f"Scanner {scanner.name} is {scanner.status.state.value}"
                )
            prepare(scanner.model_copy(deep=True))
            scanner.status = ScannerStatus.busy()
            slot.claimed_by = job_id
        logger.debug(f"Scanner {scanner_id} claimed by job {job_id}")

    def release(self, scanner_id: str, job_id: str) -> None:
        with self._table_lock:
            slot = self._slots.get(scanner_id)
        if slot is None:
            return
        with slot.lock:
            if slot.claimed_by != job_id:
                return
            slot.claimed_by = None
            if slot.scanner.status.state is ScannerState.BUSY:
                slot.scanner.status = ScannerStatus.available()
        logger.debug(f"Scanner {scanner_id} released by job {job_id}")

    # -- simulated operations ------------------------------------------------

    async def test_connection(self, scanner_id: str) -> bool:
        slot = self._slot(scanner_id)
        await asyncio.sleep(self.tester.latency())
        reason = self.tester.probe(self._snapshot(slot))

        with slot.lock:
            if slot.removed:
                raise NotFound(f"Scanner {scanner_id} not found")
            if slot.claimed_by is None:
                if reason is not None:
                    slot.scanner.status = ScannerStatus.error(reason)
                elif slot.scanner.status.state in (ScannerState.OFFLINE, ScannerState.ERROR):
                    slot.scanner.status = ScannerStatus.available()
            name = slot.scanner.name

        if reason is not None:
            logger.warning(f"Connection test failed for {name}: {reason}")
            return False
        logger.info(f"Connection test passed for {name}")
        return True

    async def discover(self) -> list[Scanner]:
        await asyncio.sleep(self.discovery_latency)

        known = {s.name for s in self.list_all()}
        candidates = [
            spec for spec in DISCOVERABLE_SCANNERS.get(self.platform, [])
            if spec.name not in known
        ]
        if candidates and self._rng.random() < self.discovery_probability:
            spec = self._rng.choice(candidates)
            self.add(spec)
            logger.info(f"Discovered scanner {spec.name}")

        return self.list_by_system(self.platform)

    def simulate_events(self) -> int:
        """Perturb random unclaimed scanners; returns how many changed."""
        with self._table_lock:
            slots = list(self._slots.values())

        changed = 0
        for slot in slots:
            if not self.events.should_perturb():
                continue
            status = self.events.next_status()
            with slot.lock:
                if slot.claimed_by is not None or slot.removed:
                    continue
                if slot.scanner.status != status:
                    slot.scanner.status = status
                    changed += 1
                    logger.info(
                        f"Simulated event: {slot.scanner.name} -> {status.state.value}"
                        + (f" ({status.message})" if status.message else "")
                    )
        return changed
