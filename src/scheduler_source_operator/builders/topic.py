"""Builder for the Topic owned by a Scheduler."""

from __future__ import annotations

from typing import Any

from ..constants import (
    KIND_TOPIC,
    LABEL_RECEIVE_ADAPTER,
    PUBSUB_API_GROUP_VERSION,
    RECEIVE_ADAPTER_VALUE,
    TOPIC_POLICY_CREATE_DELETE,
)
from .common import owner_reference
from .scheduler import scheduler_secret


def make_topic(scheduler: dict[str, Any], topic_id: str) -> dict[str, Any]:
    """Create the Topic object for a Scheduler.

    The Topic shares the Scheduler's namespace and name, and deleting the
    Scheduler deletes the Pub/Sub topic too.

    Args:
        scheduler: Owning Scheduler object
        topic_id: Pub/Sub topic name to request

    Returns:
        Topic object ready to be created
    """
    meta = scheduler.get("metadata", {})
    spec = scheduler.get("spec", {})

    topic_spec: dict[str, Any] = {
        "secret": scheduler_secret(spec),
        "topic": topic_id,
        "propagationPolicy": TOPIC_POLICY_CREATE_DELETE,
    }
    if spec.get("project"):
        topic_spec["project"] = spec["project"]

    return {
        "apiVersion": PUBSUB_API_GROUP_VERSION,
        "kind": KIND_TOPIC,
        "metadata": {
            "name": meta.get("name"),
            "namespace": meta.get("namespace"),
            "labels": {LABEL_RECEIVE_ADAPTER: RECEIVE_ADAPTER_VALUE},
            "ownerReferences": [owner_reference(scheduler)],
        },
        "spec": topic_spec,
    }
