"""Main entry point for the Scheduler Source Operator."""

from __future__ import annotations

import logging
from typing import Any

import kopf

from . import handlers
from . import health
from . import logging as structured_logging
from .config import OperatorConfig
from .constants import FINALIZER
from .handlers.scheduler import SchedulerReconciler
from .services.kube import get_kube_client
from .tracing import initialize_tracing

logger = logging.getLogger(__name__)


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure the operator."""
    config = OperatorConfig.from_env()

    # Set up structured JSON logging
    structured_logging.setup_structured_logging(config.log_level)
    initialize_tracing()

    # Keep kopf's own bookkeeping out of status; status is compared before every write
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()
    # kopf's deletion marker is the token the reconciler adds and removes itself
    settings.persistence.finalizer = FINALIZER

    settings.posting.level = logging.WARNING
    settings.networking.request_timeout = 30.0
    settings.execution.max_workers = config.max_workers

    kube = get_kube_client()
    handlers.set_reconciler(
        SchedulerReconciler(
            store=kube,
            pubsub=kube,
            jobs=kube,
            job_image=config.job_image,
            job_backoff_limit=config.job_backoff_limit,
        )
    )

    health.start_health_server(config.metrics_port)
    health.set_ready(True)
    logger.info(f"Operator started, metrics on port {config.metrics_port}")


@kopf.on.cleanup()
def shutdown(**_: Any) -> None:
    """Stop reporting ready while kopf shuts down."""
    health.set_ready(False)
    handlers.set_reconciler(None)
