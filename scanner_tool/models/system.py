"""System information models."""

from pydantic import BaseModel

from .scanner import SystemType


class SystemInfo(BaseModel):
    platform: SystemType
    total_scanners: int = 0
    platform_scanners: int = 0
    available_scanners: int = 0
    active_jobs: int = 0
