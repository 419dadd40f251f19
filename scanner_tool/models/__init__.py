"""Data models."""

from .scanner import (
    ColorMode,
    PaperKind,
    PaperSize,
    Scanner,
    ScannerCapabilities,
    ScannerSpec,
    ScannerState,
    ScannerStatus,
    ScannerType,
    SystemType,
)
from .job import (
    CreateJobRequest,
    DocumentType,
    JobState,
    JobStatus,
    OutputFormat,
    ScanJob,
    ScanResult,
    ScanSettings,
)
from .system import SystemInfo

__all__ = [
    "ColorMode",
    "PaperKind",
    "PaperSize",
    "Scanner",
    "ScannerCapabilities",
    "ScannerSpec",
    "ScannerState",
    "ScannerStatus",
    "ScannerType",
    "SystemType",
    "CreateJobRequest",
    "DocumentType",
    "JobState",
    "JobStatus",
    "OutputFormat",
    "ScanJob",
    "ScanResult",
    "ScanSettings",
    "SystemInfo",
]
