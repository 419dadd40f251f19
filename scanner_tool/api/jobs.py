"""Scan job API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends

from ..models.job import CreateJobRequest, ScanJob, ScanResult
from ..services.scan_manager import ScanJobManager
from .deps import get_manager

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post("", status_code=201)
async def create_scan_job(request: CreateJobRequest, manager: ScanJobManager = Depends(get_manager)):
    job = manager.create_job(request.scanner_id, request.document_type, request.scan_settings)
    return {"job_id": job.id, "status": job.status}


@router.get("", response_model=list[ScanJob])
async def get_all_jobs(manager: ScanJobManager = Depends(get_manager)):
    return manager.list_jobs()


@router.get("/{job_id}", response_model=ScanJob)
async def get_scan_job(job_id: str, manager: ScanJobManager = Depends(get_manager)):
    return manager.get_job(job_id)


@router.post("/{job_id}/start")
async def start_scan_job(job_id: str, manager: ScanJobManager = Depends(get_manager)):
    await manager.start_job(job_id)
    return {"job_id": job_id, "status": manager.get_job(job_id).status}


@router.post("/{job_id}/cancel")
async def cancel_scan_job(job_id: str, manager: ScanJobManager = Depends(get_manager)):
    await manager.cancel_job(job_id)
    return {"cancelled": True}


@router.get("/{job_id}/result", response_model=Optional[ScanResult])
async def get_scan_result(job_id: str, manager: ScanJobManager = Depends(get_manager)):
    return manager.get_result(job_id)
