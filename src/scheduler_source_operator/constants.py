"""Constants for the Scheduler Source Operator."""

# API Groups
API_GROUP = "events.cloud.run"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

PUBSUB_API_GROUP = "pubsub.cloud.run"
PUBSUB_API_VERSION = "v1alpha1"
PUBSUB_API_GROUP_VERSION = f"{PUBSUB_API_GROUP}/{PUBSUB_API_VERSION}"

# Resource Kinds
KIND_SCHEDULER = "Scheduler"
KIND_TOPIC = "Topic"
KIND_PULL_SUBSCRIPTION = "PullSubscription"
KIND_JOB = "Job"

# Plurals
PLURAL_SCHEDULERS = "schedulers"
PLURAL_TOPICS = "topics"
PLURAL_PULL_SUBSCRIPTIONS = "pullsubscriptions"

# Controller identity
CONTROLLER_AGENT_NAME = "cloud-run-events-scheduler-source-controller"
RECONCILER_NAME = "Scheduler"

# Finalizers
FINALIZER = CONTROLLER_AGENT_NAME

# Labels
LABEL_RECEIVE_ADAPTER = "receive-adapter"
RECEIVE_ADAPTER_VALUE = f"scheduler.{API_GROUP}"
LABEL_RESOURCE_UID = "resource-uid"
LABEL_ACTION = "action"

# Topic naming and propagation
TOPIC_NAME_PREFIX = "scheduler"
TOPIC_POLICY_CREATE_DELETE = "CreateDelete"
TOPIC_POLICY_CREATE_NO_DELETE = "CreateNoDelete"

# Default credential used when the Scheduler does not name one
DEFAULT_SECRET_NAME = "google-cloud-key"
DEFAULT_SECRET_KEY = "key.json"

# Notification job actions
ACTION_CREATE = "create"
ACTION_DELETE = "delete"

# Notification job layout
JOB_CONTAINER_NAME = "job"
JOB_CREDENTIALS_VOLUME = "google-cloud-key"
JOB_CREDENTIALS_MOUNT_PATH = "/var/secrets/google"
TERMINATION_MESSAGE_PATH = "/dev/termination-log"
MAX_NAME_LENGTH = 63

# Condition Types
COND_READY = "Ready"
COND_TOPIC_READY = "TopicReady"
COND_PULL_SUBSCRIPTION_READY = "PullSubscriptionReady"
COND_NOTIFICATION_READY = "NotificationReady"

# Condition Reasons
REASON_TOPIC_NOT_READY = "TopicNotReady"
REASON_PULL_SUBSCRIPTION_NOT_READY = "PullSubscriptionNotReady"
REASON_INVALID_SINK_URI = "InvalidSinkURI"
REASON_NOTIFICATION_NOT_READY = "NotificationNotReady"
REASON_NOTIFICATION_DELETE_FAILED = "NotificationDeleteFailed"

# Event Reasons
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_TOPIC_CREATED = "TopicCreated"
EVENT_REASON_PULL_SUBSCRIPTION_CREATED = "PullSubscriptionCreated"
EVENT_REASON_NOTIFICATION_JOB_CREATED = "NotificationJobCreated"
EVENT_REASON_NOTIFICATION_DELETE_FAILED = "NotificationDeleteFailed"
EVENT_REASON_SCHEDULER_READY = "SchedulerReady"
EVENT_REASON_FINALIZER_REMOVED = "FinalizerRemoved"
