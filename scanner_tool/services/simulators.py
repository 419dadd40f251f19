"""Random policies for connection probes and scanner status flakiness."""

import random
from dataclasses import dataclass, field
from typing import Optional

from ..models.scanner import Scanner, ScannerStatus, ScannerType

# Probability that a connection probe fails, by scanner type.
CONNECTION_FAILURE_RATES: dict[ScannerType, float] = {
    ScannerType.FLATBED: 0.05,
    ScannerType.DOCUMENT_FEEDER: 0.10,
    ScannerType.SHEET_FED: 0.15,
    ScannerType.HANDHELD: 0.20,
    ScannerType.FILM_SCANNER: 0.12,
    ScannerType.PHOTO_SCANNER: 0.08,
}

CONNECTION_FAULTS = (
    "Connection timed out",
    "Device not responding",
    "USB link reset by host",
    "Driver handshake failed",
)

DEVICE_FAULTS = (
    "Paper jam",
    "Cover open",
    "Lamp warming up failed",
    "Carriage lock engaged",
    "Sensor calibration error",
)


@dataclass
class ConnectionTester:
    latency_min: float = 0.3
    latency_max: float = 0.7
    failure_probability: Optional[float] = None  # overrides the per-type rates
    reasons: tuple[str, ...] = CONNECTION_FAULTS
    rng: random.Random = field(default_factory=random.Random)

    def latency(self) -> float:
        return self.rng.uniform(self.latency_min, self.latency_max)

    def failure_rate(self, scanner: Scanner) -> float:
        if self.failure_probability is not None:
            return self.failure_probability
        return CONNECTION_FAILURE_RATES[scanner.scanner_type]

    def probe(self, scanner: Scanner) -> Optional[str]:
        """Return a failure reason, or None when the scanner answered."""
        if self.rng.random() < self.failure_rate(scanner):
            return self.rng.choice(self.reasons)
        return None


@dataclass
class EventSimulator:
    probability: float = 0.3
    # relative weights of the status a perturbed scanner lands in
    weights: tuple[float, float, float, float] = (0.5, 0.2, 0.2, 0.1)
    reasons: tuple[str, ...] = DEVICE_FAULTS
    rng: random.Random = field(default_factory=random.Random)

    def should_perturb(self) -> bool:
        return self.rng.random() < self.probability

    def next_status(self) -> ScannerStatus:
        kind = self.rng.choices(("available", "busy", "offline", "error"), weights=self.weights)[0]
        if kind == "error":
            return ScannerStatus.error(self.rng.choice(self.reasons))
        return getattr(ScannerStatus, kind)()
