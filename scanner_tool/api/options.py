"""Enumerations and defaults for building scan forms."""

from fastapi import APIRouter

from ..models.job import DocumentType, OutputFormat, ScanSettings
from ..models.scanner import STANDARD_PAPER_SIZES, ColorMode, PaperSize, ScannerType

router = APIRouter(prefix="/options", tags=["options"])


@router.get("/document-types", response_model=list[DocumentType])
async def get_document_types():
    return list(DocumentType)


@router.get("/color-modes", response_model=list[ColorMode])
async def get_color_modes():
    return list(ColorMode)


@router.get("/paper-sizes", response_model=list[PaperSize])
async def get_paper_sizes():
    return STANDARD_PAPER_SIZES


@router.get("/output-formats", response_model=list[OutputFormat])
async def get_output_formats():
    return list(OutputFormat)


@router.get("/scanner-types", response_model=list[ScannerType])
async def get_scanner_types():
    return list(ScannerType)


@router.get("/default-settings", response_model=ScanSettings)
async def get_default_scan_settings():
    return ScanSettings()
