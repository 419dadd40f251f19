"""Host OS integration: platform detection and opening files in the desktop viewer."""

import asyncio
import logging
import platform
from pathlib import Path
from typing import Optional

from ..errors import DesktopError, ForbiddenPath, NotFound
from ..models.scanner import SystemType

logger = logging.getLogger(__name__)

# viewers still running after the launch timeout; reaped in the background
_detached: set[asyncio.Task] = set()


def current_system() -> SystemType:
    name = platform.system()
    if name == "Windows":
        return SystemType.WINDOWS
    if name == "Darwin":
        return SystemType.MACOS
    return SystemType.LINUX


def _open_command(system: SystemType, target: Path) -> list[str]:
    if system is SystemType.MACOS:
        return ["open", str(target)]
    if system is SystemType.WINDOWS:
        return ["cmd", "/c", "start", "", str(target)]
    return ["xdg-open", str(target)]


async def _reap(proc: asyncio.subprocess.Process, cmd: str) -> None:
    await proc.communicate()
    logger.debug(f"{cmd} (pid {proc.pid}) exited with {proc.returncode}")


def _detach(proc: asyncio.subprocess.Process, cmd: str) -> None:
    task = asyncio.create_task(_reap(proc, cmd))
    _detached.add(task)
    task.add_done_callback(_detached.discard)


async def open_path(target: Path, system: Optional[SystemType] = None, timeout: float = 10.0) -> None:
    """Hand ``target`` to the platform's default viewer."""
    cmd = _open_command(system or current_system(), target)
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=True,
        )
    except OSError as e:
        raise DesktopError(f"Failed to launch {cmd[0]}: {e}") from e

    try:
        _, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        # viewer is still running in the foreground; it has the file
        _detach(proc, cmd[0])
        return

    if proc.returncode:
        detail = stderr.decode("utf-8", errors="replace").strip()
        raise DesktopError(f"Failed to open {target}: {detail or f'exit code {proc.returncode}'}")


async def open_output_directory(output_dir: Path, system: Optional[SystemType] = None) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    await open_path(output_dir, system)
    return output_dir


def resolve_scan_file(file_path: Path, output_dir: Path) -> Path:
    """Resolve ``file_path`` (relative paths are taken from ``output_dir``).

    Only existing files inside the output directory are returned.
    """
    root = output_dir.expanduser().resolve()
    path = file_path.expanduser()
    if not path.is_absolute():
        path = root / path
    path = path.resolve()
    if not path.is_relative_to(root):
        raise ForbiddenPath(f"{file_path} is outside the scan output directory")
    if not path.is_file():
        raise NotFound(f"File {file_path} does not exist")
    return path


async def preview_file(file_path: Path, output_dir: Path, system: Optional[SystemType] = None) -> Path:
    path = resolve_scan_file(file_path, output_dir)
    await open_path(path, system)
    return path
