"""kopf handlers that feed Scheduler keys into the reconciler."""

from __future__ import annotations

import logging
from typing import Any

import kopf
from kubernetes.client.exceptions import ApiException

from ..config import resync_interval_seconds
from ..constants import (
    API_GROUP_VERSION,
    KIND_JOB,
    KIND_PULL_SUBSCRIPTION,
    KIND_SCHEDULER,
    KIND_TOPIC,
    LABEL_ACTION,
    LABEL_RECEIVE_ADAPTER,
    LABEL_RESOURCE_UID,
    PUBSUB_API_GROUP_VERSION,
    RECEIVE_ADAPTER_VALUE,
)
from ..services.kube.base import is_not_found
from ..utils.cache import drop_cached_object, make_cache_key, set_cached_object
from ..utils.errors import ReconcileError, sanitize_exception
from ..utils.finalizers import has_finalizer
from ..utils.keyed_lock import KeyedLock
from .scheduler import SchedulerReconciler

logger = logging.getLogger(__name__)

_reconciler: SchedulerReconciler | None = None
_locks = KeyedLock()


def set_reconciler(reconciler: SchedulerReconciler | None) -> None:
    global _reconciler
    _reconciler = reconciler


def get_reconciler() -> SchedulerReconciler:
    if _reconciler is None:
        raise RuntimeError("Scheduler reconciler is not configured")
    return _reconciler


def run_pass(key: str) -> None:
    """Run one reconcile pass, never concurrently with another for the same key."""
    with _locks.hold(key):
        get_reconciler().reconcile(key)


def owner_key(meta: Any) -> str | None:
    """Return the key of the Scheduler controlling an object, if any."""
    for ref in meta.get("ownerReferences") or []:
        if not ref.get("controller"):
            continue
        if ref.get("kind") == KIND_SCHEDULER and ref.get("apiVersion") == API_GROUP_VERSION:
            return f"{meta.get('namespace')}/{ref.get('name')}"
        return None
    return None


def _run_from_event(key: str) -> None:
    try:
        run_pass(key)
    except ReconcileError as e:
        # Retried by the resync timer, or by on_scheduler_delete once deletion started
        logger.debug(f"Pass for {key} did not converge: {sanitize_exception(e)}")


@kopf.on.event(API_GROUP_VERSION, KIND_SCHEDULER)
def on_scheduler_event(
    event: dict[str, Any],
    namespace: str,
    name: str,
    **kwargs: Any,
) -> None:
    """Refresh the shared cache and reconcile on every Scheduler change."""
    cache_key = make_cache_key(KIND_SCHEDULER, namespace, name)
    if event.get("type") == "DELETED":
        drop_cached_object(cache_key)
        return

    obj = event.get("object")
    if obj is not None:
        set_cached_object(cache_key, obj)
    _run_from_event(f"{namespace}/{name}")


@kopf.timer(
    API_GROUP_VERSION,
    KIND_SCHEDULER,
    interval=resync_interval_seconds(),
)
def resync_scheduler(namespace: str, name: str, **kwargs: Any) -> None:
    """Periodic resync; kopf backs off while the Scheduler is not converged."""
    try:
        run_pass(f"{namespace}/{name}")
    except (ReconcileError, ApiException) as e:
        raise kopf.TemporaryError(sanitize_exception(e), delay=10) from e


def teardown_pending(namespace: str, name: str) -> bool:
    """Check whether the Scheduler still carries our finalizer."""
    try:
        obj = get_reconciler().store.get_scheduler(namespace, name)
    except ApiException as e:
        if is_not_found(e):
            return False
        raise
    return has_finalizer(obj)


@kopf.on.delete(API_GROUP_VERSION, KIND_SCHEDULER)
def on_scheduler_delete(namespace: str, name: str, **kwargs: Any) -> None:
    """Retry teardown until our finalizer is gone.

    kopf stops timers once deletion starts, so this handler replaces the
    resync for deleting Schedulers. It keeps failing while the finalizer is
    in place, which also keeps kopf from releasing the object itself.
    """
    key = f"{namespace}/{name}"
    try:
        run_pass(key)
        pending = teardown_pending(namespace, name)
    except (ReconcileError, ApiException) as e:
        raise kopf.TemporaryError(sanitize_exception(e), delay=10) from e

    if pending:
        raise kopf.TemporaryError(f"Scheduler {key} still waits for teardown", delay=10)


@kopf.on.event(
    "batch/v1",
    KIND_JOB,
    labels={LABEL_RESOURCE_UID: kopf.PRESENT, LABEL_ACTION: kopf.PRESENT},
)
@kopf.on.event(PUBSUB_API_GROUP_VERSION, KIND_TOPIC, labels={LABEL_RECEIVE_ADAPTER: RECEIVE_ADAPTER_VALUE})
@kopf.on.event(PUBSUB_API_GROUP_VERSION, KIND_PULL_SUBSCRIPTION, labels={LABEL_RECEIVE_ADAPTER: RECEIVE_ADAPTER_VALUE})
def on_owned_event(meta: Any, **kwargs: Any) -> None:
    """Reconcile the controlling Scheduler when one of its children changes."""
    key = owner_key(meta)
    if key is None:
        return
    _run_from_event(key)
