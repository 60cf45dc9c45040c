"""Interfaces to the Kubernetes API used by the reconciler."""

from __future__ import annotations

from typing import Any, Protocol

from kubernetes.client.exceptions import ApiException


def is_not_found(error: BaseException) -> bool:
    """Check whether an API error means the object does not exist."""
    return isinstance(error, ApiException) and error.status == 404


class SchedulerStore(Protocol):
    """Protocol for reading and writing Scheduler objects."""

    def get_scheduler(self, namespace: str, name: str) -> dict[str, Any]:
        """Get a Scheduler, possibly from a stale cache.

        Raises:
            ApiException: 404 if the Scheduler does not exist
        """
        ...

    def patch_scheduler(self, namespace: str, name: str, body: dict[str, Any]) -> dict[str, Any]:
        """Apply a JSON merge patch to a Scheduler."""
        ...

    def update_scheduler_status(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Replace the status subresource of a Scheduler."""
        ...


class PubSubClient(Protocol):
    """Protocol for Topic and PullSubscription objects."""

    def get_topic(self, namespace: str, name: str) -> dict[str, Any]:
        ...

    def create_topic(self, body: dict[str, Any]) -> dict[str, Any]:
        ...

    def delete_topic(self, namespace: str, name: str) -> None:
        ...

    def get_pull_subscription(self, namespace: str, name: str) -> dict[str, Any]:
        ...

    def create_pull_subscription(self, body: dict[str, Any]) -> dict[str, Any]:
        ...

    def delete_pull_subscription(self, namespace: str, name: str) -> None:
        ...


class JobClient(Protocol):
    """Protocol for notification jobs and their pods."""

    def get_job(self, namespace: str, name: str) -> dict[str, Any]:
        ...

    def create_job(self, namespace: str, body: dict[str, Any]) -> dict[str, Any] | None:
        ...

    def list_pods(self, namespace: str, label_selector: str) -> list[dict[str, Any]]:
        ...
