"""Scanner API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends

from ..models.scanner import Scanner, ScannerCapabilities, ScannerSpec, SystemType
from ..services.scan_manager import ScanJobManager
from .deps import get_manager

router = APIRouter(prefix="/scanners", tags=["scanners"])


@router.get("", response_model=list[Scanner])
async def get_scanners(
    system_type: Optional[SystemType] = None,
    manager: ScanJobManager = Depends(get_manager),
):
    if system_type is not None:
        return manager.registry.list_by_system(system_type)
    return manager.registry.list_all()


@router.post("", status_code=201)
async def add_scanner(spec: ScannerSpec, manager: ScanJobManager = Depends(get_manager)):
    scanner_id = manager.registry.add(spec)
    return {"scanner_id": scanner_id}


@router.post("/discover", response_model=list[Scanner])
async def discover_scanners(manager: ScanJobManager = Depends(get_manager)):
    return await manager.registry.discover()


@router.post("/simulate-events")
async def simulate_scanner_events(manager: ScanJobManager = Depends(get_manager)):
    changed = manager.registry.simulate_events()
    return {"changed": changed}


@router.get("/{scanner_id}", response_model=Scanner)
async def get_scanner(scanner_id: str, manager: ScanJobManager = Depends(get_manager)):
    return manager.registry.get(scanner_id)


@router.get("/{scanner_id}/capabilities", response_model=ScannerCapabilities)
async def get_scanner_capabilities(scanner_id: str, manager: ScanJobManager = Depends(get_manager)):
    return manager.registry.capabilities(scanner_id)


@router.post("/{scanner_id}/test")
async def test_scanner_connection(scanner_id: str, manager: ScanJobManager = Depends(get_manager)):
    connected = await manager.registry.test_connection(scanner_id)
    return {"scanner_id": scanner_id, "connected": connected}


@router.post("/{scanner_id}/reset")
async def reset_scanner_status(scanner_id: str, manager: ScanJobManager = Depends(get_manager)):
    manager.registry.reset_status(scanner_id)
    return manager.registry.get(scanner_id)


@router.delete("/{scanner_id}", status_code=204)
async def remove_scanner(scanner_id: str, manager: ScanJobManager = Depends(get_manager)):
    manager.registry.remove(scanner_id)
