"""Builder for the PullSubscription owned by a Scheduler."""

from __future__ import annotations

import copy
from typing import Any

from ..constants import (
    KIND_PULL_SUBSCRIPTION,
    LABEL_RECEIVE_ADAPTER,
    PUBSUB_API_GROUP_VERSION,
    RECEIVE_ADAPTER_VALUE,
)
from .common import owner_reference
from .scheduler import scheduler_secret


def make_pull_subscription(scheduler: dict[str, Any], topic_id: str) -> dict[str, Any]:
    """Create the PullSubscription that delivers topic messages to the sink.

    Args:
        scheduler: Owning Scheduler object
        topic_id: Pub/Sub topic to subscribe to

    Returns:
        PullSubscription object ready to be created
    """
    meta = scheduler.get("metadata", {})
    spec = scheduler.get("spec", {})

    ps_spec: dict[str, Any] = {
        "secret": scheduler_secret(spec),
        "topic": topic_id,
    }
    if spec.get("project"):
        ps_spec["project"] = spec["project"]
    if spec.get("sink"):
        ps_spec["sink"] = copy.deepcopy(spec["sink"])
    if spec.get("ceOverrides"):
        ps_spec["ceOverrides"] = copy.deepcopy(spec["ceOverrides"])

    return {
        "apiVersion": PUBSUB_API_GROUP_VERSION,
        "kind": KIND_PULL_SUBSCRIPTION,
        "metadata": {
            "name": meta.get("name"),
            "namespace": meta.get("namespace"),
            "labels": {LABEL_RECEIVE_ADAPTER: RECEIVE_ADAPTER_VALUE},
            "ownerReferences": [owner_reference(scheduler)],
        },
        "spec": ps_spec,
    }
