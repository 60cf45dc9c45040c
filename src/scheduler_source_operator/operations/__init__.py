"""Notification jobs and the result protocol they speak."""
