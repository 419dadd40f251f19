"""Scanner-related models."""

from enum import Enum
from typing import Optional
import uuid

from pydantic import BaseModel, Field, model_validator


class ScannerType(str, Enum):
    FLATBED = "flatbed"
    DOCUMENT_FEEDER = "document_feeder"
    SHEET_FED = "sheet_fed"
    HANDHELD = "handheld"
    FILM_SCANNER = "film_scanner"
    PHOTO_SCANNER = "photo_scanner"


class SystemType(str, Enum):
    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"


class ColorMode(str, Enum):
    BLACK_AND_WHITE = "black_and_white"
    GRAYSCALE = "grayscale"
    COLOR = "color"


class PaperKind(str, Enum):
    A4 = "a4"
    A3 = "a3"
    LETTER = "letter"
    LEGAL = "legal"
    CUSTOM = "custom"


# width, height in millimetres
STANDARD_PAPER_MM: dict[PaperKind, tuple[float, float]] = {
    PaperKind.A4: (210.0, 297.0),
    PaperKind.A3: (297.0, 420.0),
    PaperKind.LETTER: (215.9, 279.4),
    PaperKind.LEGAL: (215.9, 355.6),
}


class PaperSize(BaseModel):
    """A standard sheet, or ``custom`` with explicit dimensions in mm."""

    kind: PaperKind
    width: Optional[int] = None
    height: Optional[int] = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _dimensions_only_for_custom(self) -> "PaperSize":
        if self.kind is PaperKind.CUSTOM:
            if self.width is None or self.height is None:
                raise ValueError("custom paper size needs width and height")
        elif self.width is not None or self.height is not None:
            raise ValueError(f"{self.kind.value} paper size takes no dimensions")
        return self

    @classmethod
    def custom(cls, width: int, height: int) -> "PaperSize":
        return cls(kind=PaperKind.CUSTOM, width=width, height=height)

    @property
    def dimensions_mm(self) -> tuple[float, float]:
        if self.kind is PaperKind.CUSTOM:
            return float(self.width), float(self.height)
        return STANDARD_PAPER_MM[self.kind]


STANDARD_PAPER_SIZES = [PaperSize(kind=k) for k in STANDARD_PAPER_MM]


class ScannerState(str, Enum):
    AVAILABLE = "available"
    BUSY = "busy"
    OFFLINE = "offline"
    ERROR = "error"


class ScannerStatus(BaseModel):
    """Scanner status; ``message`` is carried by ``error`` only."""

    state: ScannerState
    message: Optional[str] = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _message_only_for_error(self) -> "ScannerStatus":
        if self.state is ScannerState.ERROR:
            if not self.message:
                raise ValueError("error status needs a message")
        elif self.message is not None:
            raise ValueError(f"{self.state.value} status takes no message")
        return self

    @classmethod
    def available(cls) -> "ScannerStatus":
        return cls(state=ScannerState.AVAILABLE)

    @classmethod
    def busy(cls) -> "ScannerStatus":
        return cls(state=ScannerState.BUSY)

    @classmethod
    def offline(cls) -> "ScannerStatus":
        return cls(state=ScannerState.OFFLINE)

    @classmethod
    def error(cls, message: str) -> "ScannerStatus":
        return cls(state=ScannerState.ERROR, message=message)

    @property
    def is_available(self) -> bool:
        return self.state is ScannerState.AVAILABLE


class ScannerCapabilities(BaseModel):
    max_resolution: int = 600
    color_modes: list[ColorMode] = Field(default_factory=lambda: list(ColorMode))
    paper_sizes: list[PaperSize] = Field(default_factory=lambda: list(STANDARD_PAPER_SIZES))
    has_duplex: bool = True
    has_adf: bool = False  # automatic document feeder


class ScannerSpec(BaseModel):
    """Everything needed to register a scanner; the registry assigns the id."""

    name: str
    scanner_type: ScannerType
    system_type: SystemType
    capabilities: ScannerCapabilities = Field(default_factory=ScannerCapabilities)


class Scanner(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    scanner_type: ScannerType
    status: ScannerStatus = Field(default_factory=ScannerStatus.available)
    capabilities: ScannerCapabilities = Field(default_factory=ScannerCapabilities)
    system_type: SystemType
