"""Utility functions for the Scheduler Source Operator."""

from .cache import (
    get_cached_object,
    invalidate_cache,
    make_cache_key,
    set_cached_object,
)
from .conditions import ConditionManager, SchedulerStatus, update_condition
from .events import emit_event
from .finalizers import ensure_finalizer, remove_finalizer
from .keyed_lock import KeyedLock
from .rate_limit import handle_rate_limit_error, rate_limit_k8s

__all__ = [
    "update_condition",
    "ConditionManager",
    "SchedulerStatus",
    "emit_event",
    "ensure_finalizer",
    "remove_finalizer",
    "KeyedLock",
    "get_cached_object",
    "set_cached_object",
    "invalidate_cache",
    "make_cache_key",
    "rate_limit_k8s",
    "handle_rate_limit_error",
]
