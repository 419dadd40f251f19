"""Aggregate all API sub-routers."""

from fastapi import APIRouter

from . import desktop, jobs, options, scanners, system, ws

api_router = APIRouter()

api_router.include_router(system.router)
api_router.include_router(scanners.router)
api_router.include_router(jobs.router)
api_router.include_router(options.router)
api_router.include_router(desktop.router)
api_router.include_router(ws.router)
