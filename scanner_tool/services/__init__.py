"""Scan orchestration engine."""

from .progress_simulator import DriverTiming, ProgressSimulator
from .scan_manager import ScanJobManager, build_scan_manager, scan_manager
from .scanner_registry import ScannerRegistry
from .simulators import ConnectionTester, EventSimulator

__all__ = [
    "DriverTiming",
    "ProgressSimulator",
    "ScanJobManager",
    "build_scan_manager",
    "scan_manager",
    "ScannerRegistry",
    "ConnectionTester",
    "EventSimulator",
]
