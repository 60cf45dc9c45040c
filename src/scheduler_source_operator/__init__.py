"""Kubernetes operator that wires Scheduler resources to Pub/Sub topics and bucket notifications."""

__version__ = "0.1.0"
