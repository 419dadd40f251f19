"""WebSocket endpoint for live job progress."""

import json

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from ..errors import NotFound
from ..services.scan_manager import ScanJobManager
from .deps import get_manager

router = APIRouter(tags=["websocket"])


@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket, manager: ScanJobManager = Depends(get_manager)):
    await ws.accept()
    subscriptions: set[str] = set()

    async def send_job(job):
        await ws.send_json({
            "type": "job_progress",
            "job_id": job.id,
            "status": job.status.model_dump(mode="json"),
            "progress": job.progress,
        })

    try:
        while True:
            data = await ws.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                await ws.send_json({"type": "error", "detail": "Invalid JSON"})
                continue

            if msg.get("action") != "subscribe_job" or not msg.get("job_id"):
                await ws.send_json({"type": "error", "detail": "Unknown action"})
                continue

            job_id = msg["job_id"]
            try:
                job = manager.get_job(job_id)
            except NotFound as e:
                await ws.send_json({"type": "error", "detail": e.message})
                continue
            # a repeated subscribe only re-sends the current state
            if job_id not in subscriptions:
                manager.add_progress_listener(job_id, send_job)
                subscriptions.add(job_id)
            await send_job(job)

    except WebSocketDisconnect:
        pass
    finally:
        for job_id in subscriptions:
            manager.remove_progress_listener(job_id, send_job)
