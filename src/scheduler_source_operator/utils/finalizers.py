"""Finalizer management through single JSON merge patches."""

from __future__ import annotations

import logging
from typing import Any

from ..constants import FINALIZER

logger = logging.getLogger(__name__)


def finalizer_patch(finalizers: list[str], resource_version: str) -> dict[str, Any]:
    """Build the merge patch body that replaces the finalizer list.

    The resource version makes the API server reject the patch when the
    object changed since it was read.
    """
    return {
        "metadata": {
            "finalizers": list(finalizers),
            "resourceVersion": resource_version,
        }
    }


def has_finalizer(obj: dict[str, Any]) -> bool:
    return FINALIZER in (obj.get("metadata", {}).get("finalizers") or [])


def ensure_finalizer(store: Any, obj: dict[str, Any]) -> bool:
    """Append our finalizer if it is missing.

    Args:
        store: SchedulerStore used to issue the patch
        obj: Scheduler object as loaded for this pass

    Returns:
        True if a patch was sent
    """
    if has_finalizer(obj):
        return False

    meta = obj.get("metadata", {})
    finalizers = list(meta.get("finalizers") or [])
    finalizers.append(FINALIZER)
    store.patch_scheduler(
        meta.get("namespace", ""),
        meta.get("name", ""),
        finalizer_patch(finalizers, meta.get("resourceVersion", "")),
    )
    logger.debug(f"Added finalizer to {meta.get('namespace')}/{meta.get('name')}")
    return True


def remove_finalizer(store: Any, obj: dict[str, Any]) -> bool:
    """Drop our finalizer, but only when it is the first entry.

    Finalizers owned by other controllers are never reordered or removed.

    Returns:
        True if a patch was sent
    """
    meta = obj.get("metadata", {})
    finalizers = list(meta.get("finalizers") or [])
    if not finalizers or finalizers[0] != FINALIZER:
        return False

    store.patch_scheduler(
        meta.get("namespace", ""),
        meta.get("name", ""),
        finalizer_patch(finalizers[1:], meta.get("resourceVersion", "")),
    )
    logger.debug(f"Removed finalizer from {meta.get('namespace')}/{meta.get('name')}")
    return True
