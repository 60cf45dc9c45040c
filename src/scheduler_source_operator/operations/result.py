"""Result protocol between notification jobs and the reconciler.

A job reports its outcome exactly once, as a JSON document written to its
container termination message:

    {"result": true, "error": "", "notificationId": "135", "projectId": "my-project"}

Every field except ``result`` is omitted when empty. A document without
``result`` decodes as a failure.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from ..constants import TERMINATION_MESSAGE_PATH
from ..utils.errors import MalformedJobResultError


@dataclass
class JobResult:
    """Outcome of one notification job."""

    success: bool
    error_message: str = ""
    notification_id: str = ""
    project_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"result": self.success}
        if self.error_message:
            data["error"] = self.error_message
        if self.notification_id:
            data["notificationId"] = self.notification_id
        if self.project_id:
            data["projectId"] = self.project_id
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json(cls, message: str) -> JobResult:
        """Decode a termination message.

        Raises:
            MalformedJobResultError: If the message is not a JSON object of
                the expected shape
        """
        try:
            data = json.loads(message)
        except ValueError as e:
            raise MalformedJobResultError(f"malformed result in termination message: {e}") from e

        if not isinstance(data, dict):
            raise MalformedJobResultError("malformed result in termination message: expected a JSON object")

        result = data.get("result", False)
        if not isinstance(result, bool):
            raise MalformedJobResultError("malformed result in termination message: 'result' must be a boolean")

        fields = {}
        for key in ("error", "notificationId", "projectId"):
            value = data.get(key, "")
            if not isinstance(value, str):
                raise MalformedJobResultError(f"malformed result in termination message: {key!r} must be a string")
            fields[key] = value

        return cls(
            success=result,
            error_message=fields["error"],
            notification_id=fields["notificationId"],
            project_id=fields["projectId"],
        )


def write_termination_message(result: JobResult, path: str = TERMINATION_MESSAGE_PATH) -> None:
    """Publish a job result. Called once by the job process before it exits."""
    with open(path, "w", encoding="utf-8") as f:
        f.write(result.to_json())
