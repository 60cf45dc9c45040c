"""Accessors and defaults for the Scheduler spec."""

from __future__ import annotations

from typing import Any

from ..constants import DEFAULT_SECRET_KEY, DEFAULT_SECRET_NAME, TOPIC_NAME_PREFIX


def scheduler_secret(spec: dict[str, Any]) -> dict[str, str]:
    """Return the credential selector, falling back to the default secret."""
    secret = spec.get("secret") or {}
    if not secret.get("name"):
        return {"name": DEFAULT_SECRET_NAME, "key": DEFAULT_SECRET_KEY}
    return {"name": secret["name"], "key": secret.get("key") or DEFAULT_SECRET_KEY}


def topic_name_for(scheduler: dict[str, Any]) -> str:
    """Return the Pub/Sub topic name a Scheduler asks its Topic to use."""
    return f"{TOPIC_NAME_PREFIX}-{scheduler.get('metadata', {}).get('uid', '')}"
