"""Unit tests for condition utilities."""

from __future__ import annotations

from scheduler_source_operator.utils.conditions import (
    ConditionManager,
    SchedulerStatus,
    get_condition,
    is_condition_true,
    update_condition,
)


class TestUpdateCondition:
    """Test update_condition."""

    def test_update_condition_new(self) -> None:
        result = update_condition([], "TestCondition", "True", "TestReason", "Test message")

        assert len(result) == 1
        assert result[0]["type"] == "TestCondition"
        assert result[0]["status"] == "True"
        assert result[0]["reason"] == "TestReason"
        assert result[0]["message"] == "Test message"
        assert "lastTransitionTime" in result[0]

    def test_transition_time_kept_when_status_unchanged(self) -> None:
        conditions = [
            {
                "type": "TestCondition",
                "status": "False",
                "reason": "OldReason",
                "message": "Old message",
                "lastTransitionTime": "2023-01-01T00:00:00Z",
            }
        ]

        result = update_condition(conditions, "TestCondition", "False", "NewReason", "New message")

        assert result[0]["reason"] == "NewReason"
        assert result[0]["lastTransitionTime"] == "2023-01-01T00:00:00Z"

    def test_transition_time_changes_with_status(self) -> None:
        conditions = [
            {"type": "TestCondition", "status": "False", "lastTransitionTime": "2023-01-01T00:00:00Z"}
        ]

        result = update_condition(conditions, "TestCondition", "True", "", "")

        assert len(result) == 1
        assert result[0]["status"] == "True"
        assert result[0]["lastTransitionTime"] != "2023-01-01T00:00:00Z"

    def test_is_condition_true(self) -> None:
        conditions = [{"type": "Ready", "status": "True"}, {"type": "Other", "status": "False"}]

        assert is_condition_true(conditions)
        assert not is_condition_true(conditions, "Other")
        assert not is_condition_true(conditions, "Missing")
        assert get_condition(conditions, "Missing") is None


class TestConditionManager:
    """Test the happy condition derived from dependents."""

    def manager(self, status=None) -> ConditionManager:
        return ConditionManager(status if status is not None else {}, ["A", "B"])

    def test_initialize_sets_unknown(self) -> None:
        status = {}
        mgr = self.manager(status)

        mgr.initialize_conditions()

        assert {c["type"]: c["status"] for c in status["conditions"]} == {
            "Ready": "Unknown",
            "A": "Unknown",
            "B": "Unknown",
        }

    def test_initialize_never_regresses(self) -> None:
        status = {"conditions": [{"type": "A", "status": "False", "reason": "Broken", "message": "x"}]}
        mgr = self.manager(status)

        mgr.initialize_conditions()

        assert mgr.get_condition("A")["status"] == "False"
        assert mgr.get_condition("A")["reason"] == "Broken"
        assert mgr.get_condition("B")["status"] == "Unknown"

    def test_initialize_with_ready_happy(self) -> None:
        """Test that missing dependents start True when the whole set is ready."""
        status = {"conditions": [{"type": "Ready", "status": "True"}]}
        mgr = self.manager(status)

        mgr.initialize_conditions()

        assert mgr.get_condition("A")["status"] == "True"
        assert mgr.is_happy()

    def test_happy_follows_dependents(self) -> None:
        mgr = self.manager()
        mgr.initialize_conditions()

        mgr.mark_true("A")
        assert mgr.get_condition("Ready")["status"] == "Unknown"

        mgr.mark_true("B")
        assert mgr.get_condition("Ready")["status"] == "True"
        assert mgr.is_happy()

        mgr.mark_false("B", "BNotReady", "B %s is down", "thing")
        ready = mgr.get_condition("Ready")
        assert ready["status"] == "False"
        assert ready["reason"] == "BNotReady"
        assert ready["message"] == "B thing is down"
        assert not mgr.is_happy()

    def test_mark_unknown(self) -> None:
        mgr = self.manager()
        mgr.mark_true("A")
        mgr.mark_true("B")

        mgr.mark_unknown("A", "Waiting", "waiting")

        assert mgr.get_condition("A")["status"] == "Unknown"
        assert mgr.get_condition("Ready")["status"] == "Unknown"

    def test_message_without_args_is_literal(self) -> None:
        mgr = self.manager()

        mgr.mark_false("A", "Reason", "100% broken")

        assert mgr.get_condition("A")["message"] == "100% broken"

    def test_reading_does_not_create_conditions(self) -> None:
        status = {}
        mgr = self.manager(status)

        assert not mgr.is_happy()
        assert mgr.get_condition("A") is None
        assert status == {}


class TestSchedulerStatus:
    """Test the Scheduler status view."""

    def test_of_creates_status(self) -> None:
        obj = {}
        status = SchedulerStatus.of(obj)

        status.topic_id = "t"

        assert obj["status"] == {"topicId": "t"}

    def test_ids(self) -> None:
        raw = {}
        status = SchedulerStatus(raw)

        status.topic_id = "topic"
        status.project_id = "project"
        status.notification_id = "135"
        status.sink_uri = "http://sink"

        assert raw == {
            "topicId": "topic",
            "projectId": "project",
            "notificationId": "135",
            "sinkUri": "http://sink",
        }

        status.notification_id = ""
        assert "notificationId" not in raw
        assert status.notification_id == ""

    def test_ready_when_all_marked(self) -> None:
        status = SchedulerStatus({})
        status.initialize_conditions()
        assert not status.is_ready()

        status.mark_topic_ready()
        status.mark_pull_subscription_ready()
        assert not status.is_ready()

        status.mark_notification_ready()
        assert status.is_ready()
        assert status.get_condition("Ready")["status"] == "True"

    def test_not_ready_marks(self) -> None:
        status = SchedulerStatus({})
        status.initialize_conditions()

        status.mark_topic_not_ready("TopicNotReady", "Topic %s/%s not ready", "ns", "name")

        assert status.get_condition("TopicReady")["message"] == "Topic ns/name not ready"
        assert status.get_condition("Ready")["reason"] == "TopicNotReady"

        status.mark_pull_subscription_not_ready("PullSubscriptionNotReady", "ps")
        status.mark_notification_not_ready("NotificationNotReady", "n")
        assert status.get_condition("PullSubscriptionReady")["status"] == "False"
        assert status.get_condition("NotificationReady")["status"] == "False"
