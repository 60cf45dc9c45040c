"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_FINALIZER_REMOVED,
    EVENT_REASON_NOTIFICATION_DELETE_FAILED,
    EVENT_REASON_NOTIFICATION_JOB_CREATED,
    EVENT_REASON_PULL_SUBSCRIPTION_CREATED,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_SCHEDULER_READY,
    EVENT_REASON_TOPIC_CREATED,
)


def emit_event(
    obj: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        obj: Resource body the event is about
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        obj,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_reconcile_failed(obj: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(obj, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_topic_created(obj: dict[str, Any], topic_name: str) -> None:
    """Emit topic created event."""
    emit_event(obj, EVENT_REASON_TOPIC_CREATED, f"Topic {topic_name} created")


def emit_pull_subscription_created(obj: dict[str, Any], name: str) -> None:
    """Emit pull subscription created event."""
    emit_event(obj, EVENT_REASON_PULL_SUBSCRIPTION_CREATED, f"PullSubscription {name} created")


def emit_notification_job_created(obj: dict[str, Any], job_name: str) -> None:
    """Emit notification job created event."""
    emit_event(obj, EVENT_REASON_NOTIFICATION_JOB_CREATED, f"Notification job {job_name} created")


def emit_notification_delete_failed(obj: dict[str, Any], message: str) -> None:
    """Emit notification delete failed event."""
    emit_event(obj, EVENT_REASON_NOTIFICATION_DELETE_FAILED, message, type_="Warning")


def emit_scheduler_ready(obj: dict[str, Any], elapsed_seconds: float) -> None:
    """Emit scheduler ready event."""
    emit_event(obj, EVENT_REASON_SCHEDULER_READY, f"Scheduler became ready after {elapsed_seconds:.1f}s")


def emit_finalizer_removed(obj: dict[str, Any]) -> None:
    """Emit finalizer removed event."""
    emit_event(obj, EVENT_REASON_FINALIZER_REMOVED, "External state cleaned up, finalizer removed")
