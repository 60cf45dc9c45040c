"""Builders for objects created on behalf of a Scheduler."""

from .common import child_name, owner_reference
from .job import make_notification_job, notification_job_name
from .pull_subscription import make_pull_subscription
from .scheduler import scheduler_secret, topic_name_for
from .topic import make_topic

__all__ = [
    "child_name",
    "owner_reference",
    "make_notification_job",
    "notification_job_name",
    "make_pull_subscription",
    "make_topic",
    "scheduler_secret",
    "topic_name_for",
]
