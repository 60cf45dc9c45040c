"""Kubernetes API access for Schedulers, Pub/Sub resources and jobs."""

from .base import JobClient, PubSubClient, SchedulerStore, is_not_found
from .client import KubeClient, get_kube_client

__all__ = [
    "JobClient",
    "PubSubClient",
    "SchedulerStore",
    "KubeClient",
    "get_kube_client",
    "is_not_found",
]
