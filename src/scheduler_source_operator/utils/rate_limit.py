"""Rate limiting utilities for Kubernetes API calls."""

from __future__ import annotations

import os
import threading
import time
from functools import wraps
from typing import Any, Callable, TypeVar

from kubernetes.client.exceptions import ApiException

from .. import metrics

_F = TypeVar("_F", bound=Callable[..., Any])

_K8S_RATE_LIMIT_PER_SECOND = float(os.getenv("K8S_RATE_LIMIT_PER_SECOND", "10.0"))

_k8s_last_call_time: float = 0.0
_k8s_lock = threading.Lock()


def rate_limit_k8s(func: _F) -> _F:
    """Decorator to rate limit Kubernetes API calls.

    Spaces calls at least 1/K8S_RATE_LIMIT_PER_SECOND seconds apart across
    all worker threads.
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        global _k8s_last_call_time
        min_interval = 1.0 / _K8S_RATE_LIMIT_PER_SECOND
        with _k8s_lock:
            time_since_last_call = time.time() - _k8s_last_call_time
            if time_since_last_call < min_interval:
                time.sleep(min_interval - time_since_last_call)
            _k8s_last_call_time = time.time()
        return func(*args, **kwargs)

    return wrapper  # type: ignore


def is_rate_limit_error(e: Exception) -> bool:
    """Check whether an exception is an API server throttling response."""
    if not isinstance(e, ApiException):
        return False
    return e.status == 429 or (e.status == 503 and "rate limit" in str(e).lower())


def handle_rate_limit_error(e: Exception, attempt: int, max_retries: int = 3) -> bool:
    """Back off after a rate limit error.

    Args:
        e: Exception raised by the API call
        attempt: Zero-based number of retries already made
        max_retries: Maximum number of retries

    Returns:
        True if the caller should retry, False otherwise
    """
    if not is_rate_limit_error(e) or attempt >= max_retries:
        return False

    metrics.rate_limit_hits_total.labels(api_type="k8s").inc()
    # Exponential backoff: 1s, 2s, 4s
    time.sleep(2 ** attempt)
    return True
