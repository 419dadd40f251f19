"""System info API endpoints."""

from fastapi import APIRouter, Depends

from ..models.system import SystemInfo
from ..services.scan_manager import ScanJobManager
from .deps import get_manager

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/info", response_model=SystemInfo)
async def get_system_info(manager: ScanJobManager = Depends(get_manager)):
    registry = manager.registry
    scanners = registry.list_all()
    return SystemInfo(
        platform=registry.platform,
        total_scanners=len(scanners),
        platform_scanners=sum(1 for s in scanners if s.system_type == registry.platform),
        available_scanners=sum(1 for s in scanners if s.status.is_available),
        active_jobs=manager.active_count(),
    )
