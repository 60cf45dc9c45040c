"""Runtime configuration read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class OperatorConfig:
    """Settings the operator needs at startup."""

    job_image: str
    metrics_port: int = 8080
    job_backoff_limit: int = 3
    max_workers: int = 4
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> OperatorConfig:
        """Build the configuration from environment variables.

        Environment Variables:
            SCHEDULER_JOB_IMAGE: Image that runs notification jobs (required)
            METRICS_PORT: Port for metrics and health endpoints (default: 8080)
            JOB_BACKOFF_LIMIT: backoffLimit of notification jobs (default: 3)
            MAX_WORKERS: Number of handler threads (default: 4)
            LOG_LEVEL: Root log level (default: INFO)

        Raises:
            ValueError: If SCHEDULER_JOB_IMAGE is not set
        """
        job_image = os.getenv("SCHEDULER_JOB_IMAGE", "")
        if not job_image:
            raise ValueError("SCHEDULER_JOB_IMAGE environment variable is required")

        return cls(
            job_image=job_image,
            metrics_port=int(os.getenv("METRICS_PORT", "8080")),
            job_backoff_limit=int(os.getenv("JOB_BACKOFF_LIMIT", "3")),
            max_workers=int(os.getenv("MAX_WORKERS", "4")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def resync_interval_seconds() -> float:
    """Period of the resync timer, from RESYNC_INTERVAL_SECONDS (default: 60).

    Called once, when the timer handler is registered.
    """
    return float(os.getenv("RESYNC_INTERVAL_SECONDS", "60"))
