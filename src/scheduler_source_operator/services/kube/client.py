"""Kubernetes client implementation of the reconciler's store interfaces."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from kubernetes import client, config

from ... import metrics
from ...constants import (
    API_GROUP,
    API_VERSION,
    KIND_SCHEDULER,
    PLURAL_PULL_SUBSCRIPTIONS,
    PLURAL_SCHEDULERS,
    PLURAL_TOPICS,
    PUBSUB_API_GROUP,
    PUBSUB_API_VERSION,
)
from ...utils.cache import get_cached_object, make_cache_key, set_cached_object
from ...utils.rate_limit import handle_rate_limit_error, rate_limit_k8s
from .base import is_not_found

logger = logging.getLogger(__name__)


class KubeClient:
    """Store, Pub/Sub and job access backed by the Kubernetes API."""

    def __init__(
        self,
        custom_api: client.CustomObjectsApi,
        batch_api: client.BatchV1Api,
        core_api: client.CoreV1Api,
    ) -> None:
        self.custom_api = custom_api
        self.batch_api = batch_api
        self.core_api = core_api
        self._serializer = client.ApiClient()

    def _call(self, operation: str, fn: Callable[..., Any], **kwargs: Any) -> Any:
        """Run one API call with rate limiting, throttling retries and metrics."""
        attempt = 0
        while True:
            start_time = time.time()
            try:
                result = rate_limit_k8s(fn)(**kwargs)
                metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
                return result
            except Exception as e:
                result_label = "not_found" if is_not_found(e) else "error"
                metrics.api_call_total.labels(api_type="k8s", operation=operation, result=result_label).inc()
                if handle_rate_limit_error(e, attempt):
                    attempt += 1
                    continue
                raise
            finally:
                duration = time.time() - start_time
                metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(duration)

    def _to_dict(self, obj: Any) -> dict[str, Any]:
        if obj is None or isinstance(obj, dict):
            return obj
        return self._serializer.sanitize_for_serialization(obj)

    # Schedulers

    def get_scheduler(self, namespace: str, name: str) -> dict[str, Any]:
        cache_key = make_cache_key(KIND_SCHEDULER, namespace, name)
        cached = get_cached_object(cache_key)
        if cached is not None:
            metrics.api_call_total.labels(api_type="k8s", operation="get_scheduler", result="cache_hit").inc()
            return cached

        obj = self._call(
            "get_scheduler",
            self.custom_api.get_namespaced_custom_object,
            group=API_GROUP,
            version=API_VERSION,
            namespace=namespace,
            plural=PLURAL_SCHEDULERS,
            name=name,
        )
        set_cached_object(cache_key, obj)
        return obj

    def patch_scheduler(self, namespace: str, name: str, body: dict[str, Any]) -> dict[str, Any]:
        # CustomObjectsApi sends dict bodies as application/merge-patch+json
        obj = self._call(
            "patch_scheduler",
            self.custom_api.patch_namespaced_custom_object,
            group=API_GROUP,
            version=API_VERSION,
            namespace=namespace,
            plural=PLURAL_SCHEDULERS,
            name=name,
            body=body,
        )
        set_cached_object(make_cache_key(KIND_SCHEDULER, namespace, name), obj)
        return obj

    def update_scheduler_status(self, obj: dict[str, Any]) -> dict[str, Any]:
        meta = obj.get("metadata", {})
        updated = self._call(
            "update_scheduler_status",
            self.custom_api.replace_namespaced_custom_object_status,
            group=API_GROUP,
            version=API_VERSION,
            namespace=meta.get("namespace"),
            plural=PLURAL_SCHEDULERS,
            name=meta.get("name"),
            body=obj,
        )
        set_cached_object(make_cache_key(KIND_SCHEDULER, meta.get("namespace", ""), meta.get("name", "")), updated)
        return updated

    # Topics and PullSubscriptions

    def _get_pubsub(self, plural: str, namespace: str, name: str) -> dict[str, Any]:
        return self._call(
            f"get_{plural}",
            self.custom_api.get_namespaced_custom_object,
            group=PUBSUB_API_GROUP,
            version=PUBSUB_API_VERSION,
            namespace=namespace,
            plural=plural,
            name=name,
        )

    def _create_pubsub(self, plural: str, body: dict[str, Any]) -> dict[str, Any]:
        return self._call(
            f"create_{plural}",
            self.custom_api.create_namespaced_custom_object,
            group=PUBSUB_API_GROUP,
            version=PUBSUB_API_VERSION,
            namespace=body["metadata"]["namespace"],
            plural=plural,
            body=body,
        )

    def _delete_pubsub(self, plural: str, namespace: str, name: str) -> None:
        self._call(
            f"delete_{plural}",
            self.custom_api.delete_namespaced_custom_object,
            group=PUBSUB_API_GROUP,
            version=PUBSUB_API_VERSION,
            namespace=namespace,
            plural=plural,
            name=name,
        )

    def get_topic(self, namespace: str, name: str) -> dict[str, Any]:
        return self._get_pubsub(PLURAL_TOPICS, namespace, name)

    def create_topic(self, body: dict[str, Any]) -> dict[str, Any]:
        return self._create_pubsub(PLURAL_TOPICS, body)

    def delete_topic(self, namespace: str, name: str) -> None:
        self._delete_pubsub(PLURAL_TOPICS, namespace, name)

    def get_pull_subscription(self, namespace: str, name: str) -> dict[str, Any]:
        return self._get_pubsub(PLURAL_PULL_SUBSCRIPTIONS, namespace, name)

    def create_pull_subscription(self, body: dict[str, Any]) -> dict[str, Any]:
        return self._create_pubsub(PLURAL_PULL_SUBSCRIPTIONS, body)

    def delete_pull_subscription(self, namespace: str, name: str) -> None:
        self._delete_pubsub(PLURAL_PULL_SUBSCRIPTIONS, namespace, name)

    # Jobs and pods

    def get_job(self, namespace: str, name: str) -> dict[str, Any]:
        job = self._call("get_job", self.batch_api.read_namespaced_job, name=name, namespace=namespace)
        return self._to_dict(job)

    def create_job(self, namespace: str, body: dict[str, Any]) -> dict[str, Any] | None:
        job = self._call("create_job", self.batch_api.create_namespaced_job, namespace=namespace, body=body)
        return self._to_dict(job)

    def list_pods(self, namespace: str, label_selector: str) -> list[dict[str, Any]]:
        pods = self._call(
            "list_pods",
            self.core_api.list_namespaced_pod,
            namespace=namespace,
            label_selector=label_selector,
        )
        return [self._to_dict(pod) for pod in pods.items]


def get_kube_client() -> KubeClient:
    """Build a KubeClient from in-cluster or local kubeconfig credentials."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()

    return KubeClient(client.CustomObjectsApi(), client.BatchV1Api(), client.CoreV1Api())
