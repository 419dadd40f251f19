"""Shared route dependencies."""

from ..services.scan_manager import ScanJobManager, scan_manager


def get_manager() -> ScanJobManager:
    return scan_manager
