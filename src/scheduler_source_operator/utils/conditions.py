"""Utilities for managing Kubernetes conditions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable

from ..constants import (
    COND_NOTIFICATION_READY,
    COND_PULL_SUBSCRIPTION_READY,
    COND_READY,
    COND_TOPIC_READY,
)

STATUS_TRUE = "True"
STATUS_FALSE = "False"
STATUS_UNKNOWN = "Unknown"


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def update_condition(
    conditions: list[dict[str, Any]],
    condition_type: str,
    status: str,
    reason: str,
    message: str,
) -> list[dict[str, Any]]:
    """Update or add a condition to the conditions list.

    Args:
        conditions: List of existing conditions
        condition_type: Type of condition
        status: Status of condition ("True", "False", "Unknown")
        reason: Reason for the condition
        message: Human-readable message

    Returns:
        Updated list of conditions
    """
    now = _now()

    existing_idx = None
    for idx, cond in enumerate(conditions):
        if cond.get("type") == condition_type:
            existing_idx = idx
            break

    new_condition = {
        "type": condition_type,
        "status": status,
        "reason": reason,
        "message": message,
        "lastTransitionTime": now,
    }

    if existing_idx is not None:
        existing = conditions[existing_idx]
        # Only update lastTransitionTime if status changed
        if existing.get("status") == status:
            new_condition["lastTransitionTime"] = existing.get("lastTransitionTime", now)
        conditions[existing_idx] = new_condition
    else:
        conditions.append(new_condition)

    return conditions


def get_condition(conditions: Iterable[dict[str, Any]], condition_type: str) -> dict[str, Any] | None:
    """Return the condition of the given type, or None."""
    for cond in conditions:
        if cond.get("type") == condition_type:
            return cond
    return None


def is_condition_true(conditions: Iterable[dict[str, Any]], condition_type: str = COND_READY) -> bool:
    """Check whether a condition is present and True."""
    cond = get_condition(conditions, condition_type)
    return cond is not None and cond.get("status") == STATUS_TRUE


class ConditionManager:
    """Manages a fixed set of dependent conditions and one happy condition.

    The happy condition is True only when every dependent is True, False as
    soon as one dependent is False (carrying that dependent's reason and
    message) and Unknown otherwise. It is recomputed after every mark.
    """

    def __init__(
        self,
        status: dict[str, Any],
        dependents: Iterable[str],
        happy: str = COND_READY,
    ) -> None:
        self.status = status
        self.dependents = tuple(dependents)
        self.happy = happy

    @property
    def conditions(self) -> list[dict[str, Any]]:
        """Condition list for reading; never creates the field."""
        return self.status.get("conditions") or []

    def _writable_conditions(self) -> list[dict[str, Any]]:
        if not isinstance(self.status.get("conditions"), list):
            self.status["conditions"] = []
        return self.status["conditions"]

    def get_condition(self, condition_type: str) -> dict[str, Any] | None:
        return get_condition(self.conditions, condition_type)

    def initialize_conditions(self) -> None:
        """Set every condition that has not been observed yet.

        Missing dependents start as Unknown, or True when the happy
        condition is already True. Existing conditions are never touched.
        """
        happy = self.get_condition(self.happy)
        if happy is None:
            update_condition(self._writable_conditions(), self.happy, STATUS_UNKNOWN, "", "")
            happy_status = STATUS_UNKNOWN
        else:
            happy_status = happy.get("status", STATUS_UNKNOWN)

        initial = STATUS_TRUE if happy_status == STATUS_TRUE else STATUS_UNKNOWN
        for condition_type in self.dependents:
            if self.get_condition(condition_type) is None:
                update_condition(self._writable_conditions(), condition_type, initial, "", "")

    def mark_true(self, condition_type: str) -> None:
        update_condition(self._writable_conditions(), condition_type, STATUS_TRUE, "", "")
        self._recompute_happy()

    def mark_false(self, condition_type: str, reason: str, message_format: str, *args: Any) -> None:
        message = message_format % args if args else message_format
        update_condition(self._writable_conditions(), condition_type, STATUS_FALSE, reason, message)
        self._recompute_happy()

    def mark_unknown(self, condition_type: str, reason: str, message_format: str, *args: Any) -> None:
        message = message_format % args if args else message_format
        update_condition(self._writable_conditions(), condition_type, STATUS_UNKNOWN, reason, message)
        self._recompute_happy()

    def is_happy(self) -> bool:
        """Derive overall readiness from the dependent conditions."""
        return all(is_condition_true(self.conditions, t) for t in self.dependents)

    def _recompute_happy(self) -> None:
        if self.is_happy():
            update_condition(self._writable_conditions(), self.happy, STATUS_TRUE, "", "")
            return

        for condition_type in self.dependents:
            cond = self.get_condition(condition_type)
            if cond is not None and cond.get("status") == STATUS_FALSE:
                update_condition(
                    self._writable_conditions(),
                    self.happy,
                    STATUS_FALSE,
                    cond.get("reason", ""),
                    cond.get("message", ""),
                )
                return

        update_condition(self._writable_conditions(), self.happy, STATUS_UNKNOWN, "", "")


SCHEDULER_CONDITIONS = (
    COND_TOPIC_READY,
    COND_PULL_SUBSCRIPTION_READY,
    COND_NOTIFICATION_READY,
)


class SchedulerStatus:
    """Typed view over the status of a Scheduler object."""

    def __init__(self, status: dict[str, Any]) -> None:
        self.raw = status
        self._manager = ConditionManager(status, SCHEDULER_CONDITIONS)

    @classmethod
    def of(cls, scheduler: dict[str, Any]) -> SchedulerStatus:
        status = scheduler.get("status")
        if status is None:
            status = scheduler["status"] = {}
        return cls(status)

    def _get(self, field: str) -> str:
        return self.raw.get(field) or ""

    def _set(self, field: str, value: str) -> None:
        if value:
            self.raw[field] = value
        else:
            self.raw.pop(field, None)

    @property
    def topic_id(self) -> str:
        return self._get("topicId")

    @topic_id.setter
    def topic_id(self, value: str) -> None:
        self._set("topicId", value)

    @property
    def project_id(self) -> str:
        return self._get("projectId")

    @project_id.setter
    def project_id(self, value: str) -> None:
        self._set("projectId", value)

    @property
    def notification_id(self) -> str:
        return self._get("notificationId")

    @notification_id.setter
    def notification_id(self, value: str) -> None:
        self._set("notificationId", value)

    @property
    def sink_uri(self) -> str:
        return self._get("sinkUri")

    @sink_uri.setter
    def sink_uri(self, value: str) -> None:
        self._set("sinkUri", value)

    def get_condition(self, condition_type: str) -> dict[str, Any] | None:
        return self._manager.get_condition(condition_type)

    def is_ready(self) -> bool:
        return self._manager.is_happy()

    def initialize_conditions(self) -> None:
        self._manager.initialize_conditions()

    def mark_topic_ready(self) -> None:
        self._manager.mark_true(COND_TOPIC_READY)

    def mark_topic_not_ready(self, reason: str, message_format: str, *args: Any) -> None:
        self._manager.mark_false(COND_TOPIC_READY, reason, message_format, *args)

    def mark_pull_subscription_ready(self) -> None:
        self._manager.mark_true(COND_PULL_SUBSCRIPTION_READY)

    def mark_pull_subscription_not_ready(self, reason: str, message_format: str, *args: Any) -> None:
        self._manager.mark_false(COND_PULL_SUBSCRIPTION_READY, reason, message_format, *args)

    def mark_notification_ready(self) -> None:
        self._manager.mark_true(COND_NOTIFICATION_READY)

    def mark_notification_not_ready(self, reason: str, message_format: str, *args: Any) -> None:
        self._manager.mark_false(COND_NOTIFICATION_READY, reason, message_format, *args)
