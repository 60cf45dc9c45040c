"""Helpers shared by the object builders."""

from __future__ import annotations

import hashlib
from typing import Any

from ..constants import API_GROUP_VERSION, KIND_SCHEDULER, MAX_NAME_LENGTH


def owner_reference(owner: dict[str, Any]) -> dict[str, Any]:
    """Build a controlling owner reference pointing at a Scheduler.

    Args:
        owner: Scheduler object

    Returns:
        Owner reference dict for metadata.ownerReferences
    """
    meta = owner.get("metadata", {})
    return {
        "apiVersion": owner.get("apiVersion", API_GROUP_VERSION),
        "kind": owner.get("kind", KIND_SCHEDULER),
        "name": meta.get("name"),
        "uid": meta.get("uid"),
        "controller": True,
        "blockOwnerDeletion": True,
    }


def child_name(parent: str, suffix: str) -> str:
    """Join a name and a suffix, keeping the result a valid object name.

    Names that would exceed 63 characters are shortened and made unique with
    an md5 digest of the full name.
    """
    name = f"{parent}{suffix}"
    if len(name) <= MAX_NAME_LENGTH:
        return name

    digest = hashlib.md5(name.encode("utf-8")).hexdigest()
    keep = MAX_NAME_LENGTH - len(digest)
    return f"{parent[:keep].rstrip('-.')}{digest}"
