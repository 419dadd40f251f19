"""Synthesized scan artifacts: result descriptor and rendered output file."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from PIL import Image, ImageDraw, ImageFont
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from ..models.job import DocumentType, OutputFormat, ScanJob, ScanResult, ScanSettings
from ..models.scanner import ColorMode

MM_PER_INCH = 25.4

PAGES_BY_DOCUMENT = {
    DocumentType.CONTRACT: 3,
    DocumentType.MIXED: 2,
}

BYTES_PER_PIXEL = {
    ColorMode.BLACK_AND_WHITE: 1 / 8,
    ColorMode.GRAYSCALE: 1.0,
    ColorMode.COLOR: 3.0,
}

# Compressed size relative to the raw bitmap at quality 100.
FORMAT_RATIO = {
    OutputFormat.TIFF: 1.0,
    OutputFormat.PNG: 0.5,
    OutputFormat.PDF: 0.12,
    OutputFormat.JPEG: 0.1,
}

FILENAME_PREFIX = {
    DocumentType.TEXT: "text_document",
    DocumentType.IMAGE: "scanned_image",
    DocumentType.MIXED: "mixed_content",
    DocumentType.PHOTO: "photo_scan",
    DocumentType.BUSINESS_CARD: "business_card",
    DocumentType.RECEIPT: "receipt",
    DocumentType.CONTRACT: "contract",
    DocumentType.INVOICE: "invoice",
}

# Raster artifacts are previews; the simulated size still reflects the real resolution.
PREVIEW_DPI = 72

IMAGE_MODES = {
    ColorMode.BLACK_AND_WHITE: "1",
    ColorMode.GRAYSCALE: "L",
    ColorMode.COLOR: "RGB",
}

PIL_FORMATS = {
    OutputFormat.JPEG: "JPEG",
    OutputFormat.PNG: "PNG",
    OutputFormat.TIFF: "TIFF",
}


def page_count(document_type: DocumentType, duplex: bool) -> int:
    pages = PAGES_BY_DOCUMENT.get(document_type, 1)
    return pages * 2 if duplex else pages


def estimate_file_size(settings: ScanSettings, pages: int) -> int:
    """Bytes a real scan with these settings would take.

    Grows with resolution, quality, page count and color depth.
    """
    width_mm, height_mm = settings.paper_size.dimensions_mm
    pixels = (width_mm / MM_PER_INCH * settings.resolution) * (height_mm / MM_PER_INCH * settings.resolution)
    raw = pixels * BYTES_PER_PIXEL[settings.color_mode]
    size = raw * FORMAT_RATIO[settings.output_format] * (settings.quality / 100) * pages
    return max(1, int(size))


def output_filename(job: ScanJob, when: Optional[datetime] = None) -> str:
    when = when or datetime.now(tz=timezone.utc)
    prefix = FILENAME_PREFIX[job.document_type]
    ext = job.scan_settings.output_format.extension
    return f"{prefix}_{when:%Y%m%d_%H%M%S}_{job.id[:8]}.{ext}"


def build_result(job: ScanJob, output_dir: Path, scan_time: float) -> ScanResult:
    settings = job.scan_settings
    pages = page_count(job.document_type, settings.duplex)
    return ScanResult(
        file_path=output_dir / output_filename(job),
        file_size=estimate_file_size(settings, pages),
        pages=pages,
        resolution=settings.resolution,
        color_mode=settings.color_mode,
        format=settings.output_format,
        scan_time=scan_time,
    )


def document_lines(job: ScanJob, when: Optional[datetime] = None) -> tuple[str, list[str]]:
    """Title and body text printed on a simulated page of this document type."""
    when = when or datetime.now(tz=timezone.utc)
    settings = job.scan_settings
    doc = job.document_type
    if doc is DocumentType.TEXT:
        return "MEMORANDUM", [
            "TO: Development Team",
            "FROM: Scanner Tool Project Manager",
            f"DATE: {when:%Y-%m-%d}",
            "RE: Scanner Tool Implementation",
            "",
            "This memo exercises the scanner simulation end to end.",
            "It covers document types, output formats and scan quality.",
        ]
    if doc is DocumentType.INVOICE:
        due = when + timedelta(days=30)
        return "INVOICE", [
            f"Invoice #: INV-{when:%Y}-{job.id[:6].upper()}",
            f"Date: {when:%Y-%m-%d}    Due: {due:%Y-%m-%d}",
            "Bill To: Scanner Tool Test Customer",
            "123 Business Street, Technology City",
            "",
            "Scanner Tool License ........ $299.00",
            "Technical Support ........... $250.00",
            "Tax (9%) .................... $49.41",
            "TOTAL ....................... $598.41",
        ]
    if doc is DocumentType.CONTRACT:
        return "SOFTWARE LICENSE AGREEMENT", [
            f"Effective {when:%B %d, %Y}",
            "Between Scanner Tool Corp. (Licensor) and the end user (Licensee).",
            "",
            "1. GRANT OF LICENSE",
            "Licensor grants Licensee a non-exclusive, non-transferable license",
            "to use the Scanner Tool software under the terms herein.",
            "",
            "Signature: ______________________",
        ]
    if doc is DocumentType.RECEIPT:
        return "TECH STORE RECEIPT", [
            "123 Technology Avenue",
            f"Date: {when:%Y-%m-%d %H:%M}",
            "",
            "Scanner Tool Software     $299.00",
            "Tax (8.25%)                $24.67",
            "TOTAL                     $323.67",
            "",
            "Thank you for shopping with us",
        ]
    if doc is DocumentType.BUSINESS_CARD:
        return "JOHN SMITH", [
            "Senior Developer",
            "Scanner Tool Corp.",
            "john.smith@scantech.example",
            "+1 (555) 123-4567",
        ]
    if doc is DocumentType.PHOTO:
        return "PHOTO SCAN", [
            f"Captured: {when:%Y-%m-%d %H:%M:%S}",
            f"Resolution: {settings.resolution} DPI",
            f"Color mode: {settings.color_mode.value}",
            f"Quality: {settings.quality}%",
        ]
    title = "MIXED CONTENT DOCUMENT" if doc is DocumentType.MIXED else "IMAGE DOCUMENT"
    return title, [
        "A simulated scan generated by Scanner Tool.",
        f"Scanned {when:%Y-%m-%d %H:%M:%S} at {settings.resolution} DPI",
        f"Duplex: {'yes' if settings.duplex else 'no'}",
    ]


def _body_font_size(width_mm: float) -> float:
    return max(4.0, min(11.0, width_mm / 18))


def _write_pdf(job: ScanJob, result: ScanResult) -> None:
    width_mm, height_mm = job.scan_settings.paper_size.dimensions_mm
    page_w, page_h = width_mm * mm, height_mm * mm
    size = _body_font_size(width_mm)
    margin = min(page_w, page_h) * 0.08
    title, lines = document_lines(job)

    c = canvas.Canvas(str(result.file_path), pagesize=(page_w, page_h))
    c.setTitle(f"{title.title()} ({job.id[:8]})")
    c.setAuthor("Scanner Tool")
    for page in range(1, result.pages + 1):
        y = page_h - margin - size * 1.6
        c.setFont("Helvetica-Bold", size * 1.6)
        c.drawString(margin, y, title)
        c.setFont("Helvetica", size)
        for line in lines:
            y -= size * 1.5
            c.drawString(margin, y, line)
        c.setFont("Helvetica", size * 0.8)
        c.drawString(margin, margin, f"Page {page} of {result.pages}")
        c.showPage()
    c.save()


def _load_font(size: int):
    try:
        return ImageFont.truetype("DejaVuSans.ttf", size)
    except OSError:
        return ImageFont.load_default()


def _write_image(job: ScanJob, result: ScanResult) -> None:
    settings = job.scan_settings
    width_mm, height_mm = settings.paper_size.dimensions_mm
    size = (
        max(1, round(width_mm / MM_PER_INCH * PREVIEW_DPI)),
        max(1, round(height_mm / MM_PER_INCH * PREVIEW_DPI)),
    )
    mode = IMAGE_MODES[settings.color_mode]
    if settings.output_format is OutputFormat.JPEG and mode == "1":
        mode = "L"
    title, lines = document_lines(job)
    font_size = round(_body_font_size(width_mm))
    margin = round(min(size) * 0.08)

    pages = []
    for page in range(1, result.pages + 1):
        img = Image.new(mode, size, "white")
        draw = ImageDraw.Draw(img)
        y = margin
        draw.text((margin, y), title, fill="black", font=_load_font(round(font_size * 1.6)))
        y += round(font_size * 2.4)
        font = _load_font(font_size)
        for line in lines:
            draw.text((margin, y), line, fill="black", font=font)
            y += round(font_size * 1.5)
        draw.text((margin, size[1] - margin - font_size), f"Page {page} of {result.pages}",
                  fill="black", font=font)
        pages.append(img)

    fmt = PIL_FORMATS[settings.output_format]
    options = {"dpi": (PREVIEW_DPI, PREVIEW_DPI)}
    if settings.output_format is OutputFormat.JPEG:
        options["quality"] = min(settings.quality, 95)
    if settings.output_format is OutputFormat.TIFF and len(pages) > 1:
        options.update(save_all=True, append_images=pages[1:])
    pages[0].save(str(result.file_path), format=fmt, **options)


def write_artifact(job: ScanJob, result: ScanResult) -> None:
    """Render the simulated scan at ``result.file_path`` in the job's output format.

    PDF output is drawn with reportlab, one page per scanned page. Raster
    formats are low resolution previews drawn with Pillow; TIFF keeps every
    page, JPEG and PNG only the first. Raises OSError when the output
    directory cannot be written.
    """
    result.file_path.parent.mkdir(parents=True, exist_ok=True)
    if job.scan_settings.output_format is OutputFormat.PDF:
        _write_pdf(job, result)
    else:
        _write_image(job, result)
