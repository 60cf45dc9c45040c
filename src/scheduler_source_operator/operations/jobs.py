"""Creation, polling and result decoding of notification jobs."""

from __future__ import annotations

import logging
from typing import Any

from kubernetes.client.exceptions import ApiException

from .. import metrics
from ..builders.job import make_notification_job, notification_job_name
from ..constants import LABEL_ACTION, LABEL_RESOURCE_UID
from ..services.kube.base import JobClient, is_not_found
from ..utils.errors import (
    JobFailedError,
    JobPodNotFoundError,
    JobReportedFailureError,
    TerminationMessageMissingError,
)
from .models import JobPhase, NotificationArgs
from .result import JobResult

logger = logging.getLogger(__name__)


def _condition_true(job: dict[str, Any], condition_type: str) -> dict[str, Any] | None:
    for cond in (job.get("status") or {}).get("conditions") or []:
        if cond.get("type") == condition_type and cond.get("status") == "True":
            return cond
    return None


def is_job_complete(job: dict[str, Any]) -> bool:
    """A job is finished once it is Complete or Failed."""
    return _condition_true(job, "Complete") is not None or is_job_failed(job)


def is_job_failed(job: dict[str, Any]) -> bool:
    return _condition_true(job, "Failed") is not None


def is_job_succeeded(job: dict[str, Any]) -> bool:
    return is_job_complete(job) and not is_job_failed(job)


def job_failed_message(job: dict[str, Any]) -> str:
    cond = _condition_true(job, "Failed")
    if cond is None:
        return ""
    return f"[{cond.get('reason', '')}] {cond.get('message', '')}"


def _is_controlled_by(job: dict[str, Any], uid: str) -> bool:
    for ref in (job.get("metadata") or {}).get("ownerReferences") or []:
        if ref.get("controller"):
            return ref.get("uid") == uid
    return False


def ensure_notification_job(
    jobs: JobClient,
    args: NotificationArgs,
    backoff_limit: int = 3,
) -> tuple[JobPhase, Exception | None]:
    """Create the job for (owner, action) once and report where it stands.

    The job name is derived from the owner uid and the action, so calling
    this again looks up the same job instead of creating another one.

    Args:
        jobs: Job client
        args: Notification arguments
        backoff_limit: backoffLimit for a newly created job

    Returns:
        The job phase and the error behind a failed phase, if any
    """
    namespace = args.namespace
    job_name = notification_job_name(args.uid, args.action)

    try:
        job = jobs.get_job(namespace, job_name)
    except ApiException as e:
        if not is_not_found(e):
            logger.debug(f"Failed to get job {namespace}/{job_name}: {e}")
            return _observed(args, JobPhase.GET_FAILED), e

        logger.debug(f"Job {namespace}/{job_name} not found, creating")
        try:
            created = jobs.create_job(namespace, make_notification_job(args, backoff_limit))
        except ApiException as create_error:
            if create_error.status == 409:
                # Created by an earlier pass; the cache has not caught up yet
                return _observed(args, JobPhase.ALREADY_CREATED), None
            logger.debug(f"Failed to create job {namespace}/{job_name}: {create_error}")
            return _observed(args, JobPhase.CREATE_FAILED), create_error

        if not created:
            return _observed(args, JobPhase.CREATE_FAILED), JobFailedError(
                f"creating job {job_name!r} returned no object"
            )
        return _observed(args, JobPhase.CREATED), None

    if not _is_controlled_by(job, args.uid):
        return _observed(args, JobPhase.CREATE_FAILED), JobFailedError(
            f"job {job_name!r} is not controlled by this Scheduler"
        )

    if is_job_complete(job):
        if is_job_failed(job):
            return _observed(args, JobPhase.COMPLETED_FAILED), JobFailedError(job_failed_message(job))
        return _observed(args, JobPhase.COMPLETED_SUCCESSFUL), None

    logger.debug(f"Job {namespace}/{job_name} still active")
    return _observed(args, JobPhase.ONGOING), None


def _observed(args: NotificationArgs, phase: JobPhase) -> JobPhase:
    metrics.job_phase_total.labels(action=args.action, phase=phase.value).inc()
    return phase


def get_job_pod(jobs: JobClient, namespace: str, uid: str, action: str) -> dict[str, Any]:
    """Find the pod that ran the (uid, action) job.

    A job retried up to its backoffLimit leaves its failed pods behind, so
    the pod that succeeded is preferred, then the most recently created one.

    Raises:
        JobPodNotFoundError: If no pod carries the job labels
    """
    selector = f"{LABEL_RESOURCE_UID}={uid},{LABEL_ACTION}={action}"
    pods = jobs.list_pods(namespace, selector)
    if not pods:
        raise JobPodNotFoundError("Pod not found")

    for pod in pods:
        if (pod.get("status") or {}).get("phase") == "Succeeded":
            return pod
    return max(pods, key=lambda pod: (pod.get("metadata") or {}).get("creationTimestamp") or "")


def get_first_termination_message(pod: dict[str, Any]) -> str:
    """Return the termination message of the pod's first container, or ""."""
    statuses = (pod.get("status") or {}).get("containerStatuses") or []
    if not statuses:
        return ""
    terminated = (statuses[0].get("state") or {}).get("terminated") or {}
    return terminated.get("message") or ""


def read_job_result(jobs: JobClient, namespace: str, uid: str, action: str) -> JobResult:
    """Read the JobResult a finished job left in its termination message.

    Raises:
        JobPodNotFoundError: If the job pod cannot be found
        TerminationMessageMissingError: If the pod wrote no message
        MalformedJobResultError: If the message is not a JobResult
        JobReportedFailureError: If the job reported a failure
    """
    pod = get_job_pod(jobs, namespace, uid, action)
    pod_name = (pod.get("metadata") or {}).get("name", "")

    message = get_first_termination_message(pod)
    if not message:
        raise TerminationMessageMissingError(f"termination message missing for pod {pod_name!r}")

    result = JobResult.from_json(message)
    if not result.success:
        raise JobReportedFailureError(result.error_message)
    return result
