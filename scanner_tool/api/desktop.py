"""Open scan output in the host's file viewer."""

from pathlib import Path

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..services.scan_manager import ScanJobManager
from ..utils.desktop import open_output_directory, preview_file
from .deps import get_manager

router = APIRouter(prefix="/desktop", tags=["desktop"])


class PreviewRequest(BaseModel):
    file_path: Path


@router.post("/open-output")
async def open_output(manager: ScanJobManager = Depends(get_manager)):
    opened = await open_output_directory(manager.output_dir)
    return {"opened": str(opened)}


@router.post("/preview")
async def preview_scan_file(request: PreviewRequest, manager: ScanJobManager = Depends(get_manager)):
    opened = await preview_file(request.file_path, manager.output_dir)
    return {"opened": str(opened)}
