"""Reconciler for Scheduler resources."""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any, Callable
from urllib.parse import urlparse

from kubernetes.client.exceptions import ApiException

from .. import metrics
from ..builders import make_pull_subscription, make_topic, notification_job_name, scheduler_secret, topic_name_for
from ..constants import (
    ACTION_CREATE,
    ACTION_DELETE,
    KIND_PULL_SUBSCRIPTION,
    KIND_SCHEDULER,
    KIND_TOPIC,
    REASON_INVALID_SINK_URI,
    REASON_NOTIFICATION_DELETE_FAILED,
    REASON_NOTIFICATION_NOT_READY,
    REASON_PULL_SUBSCRIPTION_NOT_READY,
    REASON_TOPIC_NOT_READY,
)
from ..operations.jobs import ensure_notification_job, read_job_result
from ..operations.models import JobPhase, NotificationArgs
from ..services.kube.base import JobClient, PubSubClient, SchedulerStore, is_not_found
from ..tracing import add_span_attribute, trace_span
from ..utils.conditions import SchedulerStatus, is_condition_true
from ..utils.errors import (
    DependencyNotReadyError,
    InvariantViolationError,
    JobFailedError,
    ReconcileError,
    sanitize_exception,
)
from ..utils.events import (
    emit_finalizer_removed,
    emit_notification_delete_failed,
    emit_notification_job_created,
    emit_pull_subscription_created,
    emit_scheduler_ready,
    emit_topic_created,
)
from ..utils.finalizers import ensure_finalizer, remove_finalizer
from .base import BaseHandler


def split_key(key: str) -> tuple[str, str]:
    """Split a "namespace/name" work key.

    Raises:
        ValueError: If the key is not of that form
    """
    parts = key.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError(f"unexpected key format: {key!r}")
    return parts[0], parts[1]


def _parse_timestamp(value: str) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class SchedulerReconciler(BaseHandler):
    """Drives a Scheduler towards its Topic, PullSubscription and notification.

    One call to ``reconcile`` is one pass. Callers must not run two passes
    for the same key at the same time.
    """

    def __init__(
        self,
        store: SchedulerStore,
        pubsub: PubSubClient,
        jobs: JobClient,
        job_image: str,
        job_backoff_limit: int = 3,
    ):
        super().__init__(KIND_SCHEDULER)
        self.store = store
        self.pubsub = pubsub
        self.jobs = jobs
        self.job_image = job_image
        self.job_backoff_limit = job_backoff_limit

    def reconcile(self, key: str) -> None:
        """Run one pass for the Scheduler behind ``key``.

        Raises:
            ReconcileError: If the Scheduler is not converged yet
            ApiException: On store errors other than not found
        """
        try:
            namespace, name = split_key(key)
        except ValueError as e:
            self.logger.error(f"Invalid resource key {key!r}: {e}")
            return

        try:
            original = self.store.get_scheduler(namespace, name)
        except ApiException as e:
            if is_not_found(e):
                self.logger.info(f"Scheduler {key!r} in work queue no longer exists")
                return
            raise

        # The store hands out shared cached objects
        scheduler = copy.deepcopy(original)

        with trace_span("reconcile_scheduler", kind=KIND_SCHEDULER, attributes={"scheduler.key": key}):
            self.reconcile_with_metrics(scheduler, lambda: self._reconcile_and_write(original, scheduler))

    def _reconcile_and_write(self, original: dict[str, Any], scheduler: dict[str, Any]) -> None:
        error: Exception | None = None
        torn_down = False
        try:
            torn_down = self._reconcile(scheduler)
        except (ReconcileError, ApiException) as e:
            error = e

        if torn_down:
            # The object is on its way out; nothing left to record
            return

        if original.get("status") != scheduler.get("status") or original.get("metadata") != scheduler.get("metadata"):
            self.update_status(scheduler)
        else:
            self.log_debug(scheduler.get("metadata", {}), "Status unchanged, skipping update")

        if error is not None:
            raise error

    def _reconcile(self, scheduler: dict[str, Any]) -> bool:
        """Run the business logic of one pass on the working copy.

        Returns:
            True if teardown finished and the finalizer was removed
        """
        status = SchedulerStatus.of(scheduler)
        notification_id = status.notification_id
        topic_id = status.topic_id
        status.initialize_conditions()
        status.notification_id = notification_id
        status.topic_id = topic_id

        meta = scheduler.get("metadata", {})
        if meta.get("deletionTimestamp"):
            return self._teardown(scheduler, status)

        self._converge(scheduler, status, topic_id or topic_name_for(scheduler))
        return False

    # Teardown

    def _teardown(self, scheduler: dict[str, Any], status: SchedulerStatus) -> bool:
        meta = scheduler.get("metadata", {})
        namespace, name = meta.get("namespace", ""), meta.get("name", "")
        self.log_info(meta, "Scheduler is being deleted, cleaning up", event="teardown", reason="Deleting")

        with trace_span("teardown_scheduler", kind=KIND_SCHEDULER):
            if status.notification_id:
                self.delete_notification(scheduler, status)

            self.delete_topic(namespace, name)
            status.topic_id = ""
            self.delete_pull_subscription(namespace, name)

            if not remove_finalizer(self.store, scheduler):
                self.log_debug(meta, "Finalizer is not first or absent, leaving finalizers untouched")
                return False

        emit_finalizer_removed(scheduler)
        self.log_info(meta, "Removed finalizer", event="finalizer_removed", reason="FinalizerRemoved")
        return True

    def delete_notification(self, scheduler: dict[str, Any], status: SchedulerStatus) -> None:
        """Run the delete job for the recorded notification and clear its id.

        The id is only cleared once the job reports success. Until then the
        finalizer stays in place.
        """
        meta = scheduler.get("metadata", {})
        spec = scheduler.get("spec", {})
        args = NotificationArgs(
            uid=meta.get("uid", ""),
            image=self.job_image,
            action=ACTION_DELETE,
            owner=scheduler,
            secret=scheduler_secret(spec),
            project_id=status.project_id or spec.get("project", ""),
            bucket=spec.get("bucket", ""),
            notification_id=status.notification_id,
        )

        try:
            self._run_notification_job(scheduler, args)
        except (ReconcileError, ApiException) as e:
            message = sanitize_exception(e)
            status.mark_notification_not_ready(
                REASON_NOTIFICATION_DELETE_FAILED,
                "Failed to delete Scheduler notification: %s",
                message,
            )
            if not isinstance(e, DependencyNotReadyError):
                emit_notification_delete_failed(scheduler, f"Failed to delete Scheduler notification: {message}")
            raise

        status.notification_id = ""

    def delete_topic(self, namespace: str, name: str) -> None:
        self._delete_subresource(KIND_TOPIC, self.pubsub.delete_topic, namespace, name)

    def delete_pull_subscription(self, namespace: str, name: str) -> None:
        self._delete_subresource(KIND_PULL_SUBSCRIPTION, self.pubsub.delete_pull_subscription, namespace, name)

    def _delete_subresource(
        self,
        kind: str,
        delete_fn: Callable[[str, str], None],
        namespace: str,
        name: str,
    ) -> None:
        try:
            delete_fn(namespace, name)
        except ApiException as e:
            if is_not_found(e):
                self.logger.debug(f"{kind} {namespace}/{name} already absent")
                return
            metrics.subresource_operations_total.labels(kind=kind, operation="delete", result="error").inc()
            raise
        metrics.subresource_operations_total.labels(kind=kind, operation="delete", result="success").inc()
        self.logger.debug(f"Deleted {kind} {namespace}/{name}")

    # Converge

    def _converge(self, scheduler: dict[str, Any], status: SchedulerStatus, topic_id: str) -> None:
        meta = scheduler.get("metadata", {})
        if ensure_finalizer(self.store, scheduler):
            self.log_info(meta, "Added finalizer", event="finalizer_added", reason="FinalizerAdded")

        self._converge_topic(scheduler, status, topic_id)
        self._converge_pull_subscription(scheduler, status)
        self._converge_notification(scheduler, status)

    def _converge_topic(self, scheduler: dict[str, Any], status: SchedulerStatus, topic_id: str) -> None:
        with trace_span("reconcile_topic", kind=KIND_TOPIC):
            try:
                topic = self.reconcile_topic(scheduler, topic_id)
            except ApiException as e:
                status.mark_topic_not_ready(
                    REASON_TOPIC_NOT_READY, "Failed to reconcile Topic: %s", sanitize_exception(e)
                )
                raise

        t_meta = topic.get("metadata") or {}
        t_status = topic.get("status") or {}
        topic_ref = f"Topic {t_meta.get('namespace', '')}/{t_meta.get('name', '')}"

        if not is_condition_true(t_status.get("conditions") or []):
            status.mark_topic_not_ready(REASON_TOPIC_NOT_READY, "%s not ready", topic_ref)
            raise DependencyNotReadyError(f"{topic_ref} not ready")

        if not t_status.get("projectId"):
            status.mark_topic_not_ready(REASON_TOPIC_NOT_READY, "%s did not expose projectid", topic_ref)
            raise InvariantViolationError(f"{topic_ref} did not expose projectid")

        if not t_status.get("topicId"):
            status.mark_topic_not_ready(REASON_TOPIC_NOT_READY, "%s did not expose topicid", topic_ref)
            raise InvariantViolationError(f"{topic_ref} did not expose topicid")

        if t_status["topicId"] != topic_id:
            message = f'{topic_ref} topic mismatch expected "{topic_id}" got "{t_status["topicId"]}"'
            status.mark_topic_not_ready(REASON_TOPIC_NOT_READY, "%s", message)
            raise InvariantViolationError(message)

        status.topic_id = t_status["topicId"]
        status.project_id = t_status["projectId"]
        status.mark_topic_ready()
        add_span_attribute("scheduler.topic_id", status.topic_id)

    def _converge_pull_subscription(self, scheduler: dict[str, Any], status: SchedulerStatus) -> None:
        with trace_span("reconcile_pull_subscription", kind=KIND_PULL_SUBSCRIPTION):
            try:
                ps = self.reconcile_pull_subscription(scheduler, status.topic_id)
            except ApiException as e:
                status.mark_pull_subscription_not_ready(
                    REASON_PULL_SUBSCRIPTION_NOT_READY,
                    "Failed to reconcile PullSubscription: %s",
                    sanitize_exception(e),
                )
                raise

        ps_meta = ps.get("metadata") or {}
        ps_status = ps.get("status") or {}
        ps_ref = f"PullSubscription {ps_meta.get('namespace', '')}/{ps_meta.get('name', '')}"

        if not is_condition_true(ps_status.get("conditions") or []):
            status.mark_pull_subscription_not_ready(REASON_PULL_SUBSCRIPTION_NOT_READY, "%s not ready", ps_ref)
            raise DependencyNotReadyError(f"{ps_ref} not ready")

        sink_uri = ps_status.get("sinkUri") or ""
        parsed = urlparse(sink_uri)
        if not parsed.scheme or not parsed.netloc:
            status.mark_pull_subscription_not_ready(
                REASON_INVALID_SINK_URI, 'failed to parse sink URI "%s"', sink_uri
            )
            raise InvariantViolationError(f'failed to parse sink URI "{sink_uri}"')

        status.sink_uri = sink_uri
        status.mark_pull_subscription_ready()

    def _converge_notification(self, scheduler: dict[str, Any], status: SchedulerStatus) -> None:
        meta = scheduler.get("metadata", {})
        spec = scheduler.get("spec", {})
        args = NotificationArgs(
            uid=meta.get("uid", ""),
            image=self.job_image,
            action=ACTION_CREATE,
            owner=scheduler,
            secret=scheduler_secret(spec),
            project_id=status.project_id,
            bucket=spec.get("bucket", ""),
            topic_id=status.topic_id,
        )

        try:
            result = self._run_notification_job(scheduler, args)
        except (ReconcileError, ApiException) as e:
            status.mark_notification_not_ready(
                REASON_NOTIFICATION_NOT_READY,
                "Failed to create Scheduler notification: %s",
                sanitize_exception(e),
            )
            raise

        status.notification_id = result.notification_id
        if result.project_id and not status.project_id:
            status.project_id = result.project_id
        status.mark_notification_ready()

    def _run_notification_job(self, scheduler: dict[str, Any], args: NotificationArgs) -> Any:
        """Ensure the job for ``args`` exists and return its decoded result.

        Raises:
            DependencyNotReadyError: If the job has not completed yet
            JobFailedError: If the job could not be created or failed
            JobResultError: If the result cannot be read or reports failure
            ApiException: If the job could not be looked up
        """
        meta = scheduler.get("metadata", {})
        job_name = notification_job_name(args.uid, args.action)

        with trace_span("notification_job", kind=KIND_SCHEDULER, attributes={"job.action": args.action}):
            phase, err = ensure_notification_job(self.jobs, args, self.job_backoff_limit)
            self.log_debug(meta, f"Job {job_name} phase {phase.value}", event="job_phase", reason=phase.value)

            if phase == JobPhase.CREATED:
                emit_notification_job_created(scheduler, job_name)
                self.log_info(meta, f"Created job {job_name}", event="job_created", reason="JobCreated")

            if phase == JobPhase.GET_FAILED and isinstance(err, ApiException):
                raise err

            if phase in (JobPhase.CREATE_FAILED, JobPhase.COMPLETED_FAILED, JobPhase.GET_FAILED):
                message = f'Job "{job_name}" failed to create or job failed'
                if err is not None:
                    message = f"{message}: {err}"
                raise JobFailedError(message)

            if phase != JobPhase.COMPLETED_SUCCESSFUL:
                raise DependencyNotReadyError(f'Job "{job_name}" has not completed yet')

            return read_job_result(self.jobs, args.namespace, args.uid, args.action)

    # Sub-resources

    def reconcile_topic(self, scheduler: dict[str, Any], topic_id: str) -> dict[str, Any]:
        """Return the Scheduler's Topic, creating it if it does not exist."""
        return self._ensure_subresource(
            scheduler,
            KIND_TOPIC,
            self.pubsub.get_topic,
            self.pubsub.create_topic,
            lambda: make_topic(scheduler, topic_id),
            emit_topic_created,
        )

    def reconcile_pull_subscription(self, scheduler: dict[str, Any], topic_id: str) -> dict[str, Any]:
        """Return the Scheduler's PullSubscription, creating it if it does not exist."""
        return self._ensure_subresource(
            scheduler,
            KIND_PULL_SUBSCRIPTION,
            self.pubsub.get_pull_subscription,
            self.pubsub.create_pull_subscription,
            lambda: make_pull_subscription(scheduler, topic_id),
            emit_pull_subscription_created,
        )

    def _ensure_subresource(
        self,
        scheduler: dict[str, Any],
        kind: str,
        get_fn: Callable[[str, str], dict[str, Any]],
        create_fn: Callable[[dict[str, Any]], dict[str, Any]],
        desired_fn: Callable[[], dict[str, Any]],
        on_created: Callable[[dict[str, Any], str], None],
    ) -> dict[str, Any]:
        """Get-or-create a sub-resource named after its owner.

        An existing object is returned as is; it is never updated.
        """
        meta = scheduler.get("metadata", {})
        namespace, name = meta.get("namespace", ""), meta.get("name", "")

        try:
            return get_fn(namespace, name)
        except ApiException as e:
            if not is_not_found(e):
                raise

        try:
            created = create_fn(desired_fn())
        except ApiException:
            metrics.subresource_operations_total.labels(kind=kind, operation="create", result="error").inc()
            raise

        metrics.subresource_operations_total.labels(kind=kind, operation="create", result="success").inc()
        self.log_info(meta, f"Created {kind} {namespace}/{name}", event="created", reason=f"{kind}Created")
        on_created(scheduler, name)
        return created

    # Status

    def update_status(self, desired: dict[str, Any]) -> dict[str, Any]:
        """Persist the status of ``desired`` on top of the latest stored object.

        Returns:
            The stored object after the write, or as read when no write was needed
        """
        meta = desired.get("metadata", {})
        source = self.store.get_scheduler(meta.get("namespace", ""), meta.get("name", ""))

        if source.get("status") == desired.get("status"):
            return source

        was_ready = SchedulerStatus(copy.deepcopy(source.get("status") or {})).is_ready()
        now_ready = SchedulerStatus(copy.deepcopy(desired.get("status") or {})).is_ready()

        existing = copy.deepcopy(source)
        existing["status"] = copy.deepcopy(desired.get("status"))
        updated = self.store.update_scheduler_status(existing)

        metrics.resource_status_total.labels(kind=self.kind, status="ready" if now_ready else "not_ready").inc()

        if now_ready and not was_ready:
            created_at = _parse_timestamp(meta.get("creationTimestamp", ""))
            elapsed = (datetime.now(timezone.utc) - created_at).total_seconds() if created_at else 0.0
            self.log_info(
                meta,
                f"Scheduler became ready after {elapsed:.1f}s",
                event="ready",
                reason="SchedulerReady",
                duration_seconds=elapsed,
            )
            metrics.ready_latency_seconds.labels(kind=self.kind).observe(elapsed)
            emit_scheduler_ready(desired, elapsed)

        return updated