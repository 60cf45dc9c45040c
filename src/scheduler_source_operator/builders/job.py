"""Builder for notification jobs."""

from __future__ import annotations

from typing import Any

from ..constants import (
    JOB_CONTAINER_NAME,
    JOB_CREDENTIALS_MOUNT_PATH,
    JOB_CREDENTIALS_VOLUME,
    LABEL_ACTION,
    LABEL_RESOURCE_UID,
    TERMINATION_MESSAGE_PATH,
    TOPIC_NAME_PREFIX,
)
from ..operations.models import NotificationArgs
from .common import child_name, owner_reference


def notification_job_name(uid: str, action: str) -> str:
    """Return the deterministic job name for an (owner uid, action) pair."""
    return child_name(f"{TOPIC_NAME_PREFIX}-{uid}", f"-{action}")


def job_labels(uid: str, action: str) -> dict[str, str]:
    """Labels put on the job and its pods so the pod can be found later."""
    return {
        LABEL_RESOURCE_UID: uid,
        LABEL_ACTION: action,
    }


def make_notification_job(args: NotificationArgs, backoff_limit: int = 3) -> dict[str, Any]:
    """Create the batch/v1 Job that performs one notification action.

    The job writes its JobResult to the container termination message.

    Args:
        args: Notification arguments
        backoff_limit: Retries of the pod before the job is marked failed

    Returns:
        Job manifest ready to be created
    """
    labels = job_labels(args.uid, args.action)
    env = [
        {"name": "ACTION", "value": args.action},
        {"name": "PROJECT_ID", "value": args.project_id},
        {"name": "BUCKET", "value": args.bucket},
        {"name": "TOPIC_ID", "value": args.topic_id},
        {"name": "NOTIFICATION_ID", "value": args.notification_id},
        {
            "name": "GOOGLE_APPLICATION_CREDENTIALS",
            "value": f"{JOB_CREDENTIALS_MOUNT_PATH}/{args.secret.get('key', '')}",
        },
    ]

    return {
        "apiVersion": "batch/v1",
        "kind": "Job",
        "metadata": {
            "name": notification_job_name(args.uid, args.action),
            "namespace": args.namespace,
            "labels": dict(labels),
            "ownerReferences": [owner_reference(args.owner)],
        },
        "spec": {
            "backoffLimit": backoff_limit,
            "template": {
                "metadata": {"labels": dict(labels)},
                "spec": {
                    "restartPolicy": "Never",
                    "containers": [
                        {
                            "name": JOB_CONTAINER_NAME,
                            "image": args.image,
                            "imagePullPolicy": "Always",
                            "env": env,
                            "terminationMessagePath": TERMINATION_MESSAGE_PATH,
                            "volumeMounts": [
                                {
                                    "name": JOB_CREDENTIALS_VOLUME,
                                    "mountPath": JOB_CREDENTIALS_MOUNT_PATH,
                                    "readOnly": True,
                                }
                            ],
                        }
                    ],
                    "volumes": [
                        {
                            "name": JOB_CREDENTIALS_VOLUME,
                            "secret": {"secretName": args.secret.get("name", "")},
                        }
                    ],
                },
            },
        },
    }
