"""Scan job models."""

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional
import uuid

from pydantic import BaseModel, Field, model_validator

from .scanner import ColorMode, PaperKind, PaperSize


class DocumentType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    MIXED = "mixed"
    PHOTO = "photo"
    BUSINESS_CARD = "business_card"
    RECEIPT = "receipt"
    CONTRACT = "contract"
    INVOICE = "invoice"


class OutputFormat(str, Enum):
    PDF = "pdf"
    JPEG = "jpeg"
    PNG = "png"
    TIFF = "tiff"

    @property
    def extension(self) -> str:
        return {"jpeg": "jpg", "tiff": "tif"}.get(self.value, self.value)


class ScanSettings(BaseModel):
    resolution: int = 300
    color_mode: ColorMode = ColorMode.COLOR
    paper_size: PaperSize = Field(default_factory=lambda: PaperSize(kind=PaperKind.A4))
    duplex: bool = False
    output_format: OutputFormat = OutputFormat.PDF
    quality: int = 85


class JobState(str, Enum):
    PENDING = "pending"
    SCANNING = "scanning"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATES = frozenset({JobState.COMPLETED, JobState.FAILED, JobState.CANCELLED})
ACTIVE_STATES = frozenset({JobState.PENDING, JobState.SCANNING, JobState.PROCESSING})


class JobStatus(BaseModel):
    """Job status; ``failed`` carries a reason and whether the fault was simulated."""

    state: JobState
    reason: Optional[str] = None
    simulated: bool = False

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _reason_only_for_failed(self) -> "JobStatus":
        if self.state is JobState.FAILED:
            if not self.reason:
                raise ValueError("failed status needs a reason")
        elif self.reason is not None or self.simulated:
            raise ValueError(f"{self.state.value} status takes no failure details")
        return self

    @classmethod
    def of(cls, state: JobState) -> "JobStatus":
        return cls(state=state)

    @classmethod
    def failed(cls, reason: str, simulated: bool = False) -> "JobStatus":
        return cls(state=JobState.FAILED, reason=reason, simulated=simulated)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES


class ScanResult(BaseModel):
    file_path: Path
    file_size: int  # bytes
    pages: int
    resolution: int
    color_mode: ColorMode
    format: OutputFormat
    scan_time: float  # seconds actually spent by the driver


class ScanJob(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    scanner_id: str
    document_type: DocumentType
    scan_settings: ScanSettings
    status: JobStatus = Field(default_factory=lambda: JobStatus.of(JobState.PENDING))
    progress: float = 0.0
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))
    completed_at: Optional[datetime] = None
    scan_result: Optional[ScanResult] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


class CreateJobRequest(BaseModel):
    scanner_id: str
    document_type: DocumentType
    scan_settings: ScanSettings = Field(default_factory=ScanSettings)
