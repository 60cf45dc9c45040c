"""Models for notification job operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class JobPhase(str, Enum):
    """Where a notification job stands, as seen by one reconcile pass."""

    CREATED = "Created"
    ALREADY_CREATED = "AlreadyCreated"
    ONGOING = "Ongoing"
    COMPLETED_SUCCESSFUL = "CompletedSuccessful"
    COMPLETED_FAILED = "CompletedFailed"
    CREATE_FAILED = "CreateFailed"
    GET_FAILED = "GetFailed"


@dataclass
class NotificationArgs:
    """Everything a notification job needs to create or delete a notification."""

    uid: str
    image: str
    action: str
    owner: dict[str, Any]
    secret: dict[str, str] = field(default_factory=dict)
    project_id: str = ""
    bucket: str = ""
    topic_id: str = ""
    notification_id: str = ""

    @property
    def namespace(self) -> str:
        return self.owner.get("metadata", {}).get("namespace", "")
