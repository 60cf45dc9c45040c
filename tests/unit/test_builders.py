"""Tests for the Topic, PullSubscription and Job builders."""

from __future__ import annotations

from scheduler_source_operator.builders import (
    child_name,
    make_notification_job,
    make_pull_subscription,
    make_topic,
    notification_job_name,
    owner_reference,
    scheduler_secret,
    topic_name_for,
)
from scheduler_source_operator.operations.models import NotificationArgs


def scheduler(spec=None):
    return {
        "apiVersion": "events.cloud.run/v1alpha1",
        "kind": "Scheduler",
        "metadata": {"name": "my-scheduler", "namespace": "ns", "uid": "uid-1"},
        "spec": spec if spec is not None else {},
    }


class TestCommon:
    """Test shared builder helpers."""

    def test_owner_reference(self):
        assert owner_reference(scheduler()) == {
            "apiVersion": "events.cloud.run/v1alpha1",
            "kind": "Scheduler",
            "name": "my-scheduler",
            "uid": "uid-1",
            "controller": True,
            "blockOwnerDeletion": True,
        }

    def test_child_name_short(self):
        assert child_name("scheduler-uid", "-create") == "scheduler-uid-create"

    def test_child_name_long_is_hashed(self):
        parent = "scheduler-" + "a" * 60
        name = child_name(parent, "-delete")

        assert len(name) <= 63
        assert name.startswith("scheduler-aaa")
        assert name == child_name(parent, "-delete")
        assert name != child_name(parent, "-create")


class TestSchedulerSpec:
    """Test Scheduler spec defaults."""

    def test_default_secret(self):
        assert scheduler_secret({}) == {"name": "google-cloud-key", "key": "key.json"}

    def test_named_secret(self):
        assert scheduler_secret({"secret": {"name": "creds", "key": "sa.json"}}) == {"name": "creds", "key": "sa.json"}
        assert scheduler_secret({"secret": {"name": "creds"}}) == {"name": "creds", "key": "key.json"}

    def test_topic_name(self):
        assert topic_name_for(scheduler()) == "scheduler-uid-1"


class TestMakeTopic:
    """Test the Topic builder."""

    def test_topic(self):
        topic = make_topic(scheduler({"project": "p"}), "scheduler-uid-1")

        assert topic["apiVersion"] == "pubsub.cloud.run/v1alpha1"
        assert topic["kind"] == "Topic"
        assert topic["metadata"]["name"] == "my-scheduler"
        assert topic["metadata"]["namespace"] == "ns"
        assert topic["metadata"]["labels"] == {"receive-adapter": "scheduler.events.cloud.run"}
        assert topic["metadata"]["ownerReferences"][0]["uid"] == "uid-1"
        assert topic["spec"] == {
            "secret": {"name": "google-cloud-key", "key": "key.json"},
            "topic": "scheduler-uid-1",
            "propagationPolicy": "CreateDelete",
            "project": "p",
        }

    def test_topic_without_project(self):
        assert "project" not in make_topic(scheduler(), "t")["spec"]


class TestMakePullSubscription:
    """Test the PullSubscription builder."""

    def test_pull_subscription(self):
        sink = {"ref": {"apiVersion": "v1", "kind": "Service", "name": "sink"}}
        spec = {"sink": sink, "ceOverrides": {"extensions": {"a": "b"}}}

        ps = make_pull_subscription(scheduler(spec), "scheduler-uid-1")

        assert ps["kind"] == "PullSubscription"
        assert ps["metadata"]["name"] == "my-scheduler"
        assert ps["spec"]["topic"] == "scheduler-uid-1"
        assert ps["spec"]["sink"] == sink
        assert ps["spec"]["ceOverrides"] == {"extensions": {"a": "b"}}
        assert "project" not in ps["spec"]

    def test_sink_is_copied(self):
        spec = {"sink": {"uri": "http://a"}}

        ps = make_pull_subscription(scheduler(spec), "t")
        ps["spec"]["sink"]["uri"] = "http://b"

        assert spec["sink"]["uri"] == "http://a"


class TestMakeNotificationJob:
    """Test the notification Job builder."""

    def args(self, **kwargs):
        defaults = dict(
            uid="uid-1",
            image="gcr.io/p/job",
            action="create",
            owner=scheduler(),
            secret={"name": "creds", "key": "sa.json"},
            project_id="p",
            bucket="b",
            topic_id="scheduler-uid-1",
        )
        defaults.update(kwargs)
        return NotificationArgs(**defaults)

    def test_name(self):
        assert notification_job_name("uid-1", "delete") == "scheduler-uid-1-delete"

    def test_job(self):
        job = make_notification_job(self.args(), backoff_limit=2)

        assert job["metadata"]["name"] == "scheduler-uid-1-create"
        assert job["metadata"]["namespace"] == "ns"
        assert job["metadata"]["labels"] == {"resource-uid": "uid-1", "action": "create"}
        assert job["metadata"]["ownerReferences"][0]["controller"] is True
        assert job["spec"]["backoffLimit"] == 2

        template = job["spec"]["template"]
        assert template["metadata"]["labels"] == {"resource-uid": "uid-1", "action": "create"}
        assert template["spec"]["restartPolicy"] == "Never"
        assert template["spec"]["volumes"][0]["secret"] == {"secretName": "creds"}

        container = template["spec"]["containers"][0]
        assert container["image"] == "gcr.io/p/job"
        assert container["terminationMessagePath"] == "/dev/termination-log"
        env = {e["name"]: e["value"] for e in container["env"]}
        assert env["ACTION"] == "create"
        assert env["BUCKET"] == "b"
        assert env["TOPIC_ID"] == "scheduler-uid-1"
        assert env["GOOGLE_APPLICATION_CREDENTIALS"] == "/var/secrets/google/sa.json"

    def test_delete_job_carries_notification_id(self):
        job = make_notification_job(self.args(action="delete", notification_id="135"))

        container = job["spec"]["template"]["spec"]["containers"][0]
        env = {e["name"]: e["value"] for e in container["env"]}
        assert env["NOTIFICATION_ID"] == "135"
        assert job["metadata"]["name"] == "scheduler-uid-1-delete"
