"""Application settings."""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings

from .models.scanner import SystemType


class Settings(BaseSettings):
    host: str = "127.0.0.1"
    port: int = 8797
    debug: bool = False

    output_dir: Path = Path.home() / "Documents" / "Scanner Tool Outputs"
    write_artifacts: bool = True
    platform: Optional[SystemType] = None  # defaults to the host OS
    random_seed: Optional[int] = None

    # Scan job driver
    job_duration_min: float = 3.0
    job_duration_max: float = 8.0
    job_steps: int = 20
    step_jitter: float = 0.2
    processing_threshold: float = 0.8
    job_failure_probability: float = 0.05
    job_history_limit: Optional[int] = None  # None keeps every finished job

    # Connection test
    connection_latency_min: float = 0.3
    connection_latency_max: float = 0.7
    connection_failure_probability: Optional[float] = None  # None = per scanner type

    # Status flakiness
    event_probability: float = 0.3
    event_interval: Optional[float] = None  # seconds between automatic runs

    # Discovery
    discovery_latency: float = 1.0
    discovery_probability: float = 0.3

    model_config = {"env_prefix": "SCANNER_TOOL_"}


settings = Settings()
