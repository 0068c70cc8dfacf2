"""Engine-internal value describing a deficiency that currently holds."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from typing import Any, Mapping

from .notification import NotificationType, SubjectRef


def normalize_message(message: str | None) -> str:
    """Return ``message`` with unified line endings and no outer whitespace."""

    if message is None:
        return ""
    return message.replace("\r\n", "\n").strip()


def compute_fingerprint(
    category: NotificationType,
    subject: SubjectRef,
    details: Mapping[str, Any],
) -> str:
    """Hash a canonical serialization of the structured deficiency data."""

    canonical = json.dumps(
        {
            "category": category.value,
            "subject": [subject.subject_type, subject.subject_id],
            "details": details,
        },
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class Deficiency:
    """A subject currently failing one of the watched conditions.

    ``details`` holds the structured data the rendered text was built from;
    the fingerprint is derived from it, never from ``message``.
    """

    subject: SubjectRef
    category: NotificationType
    title: str
    message: str
    action_url: str | None
    details: Mapping[str, Any] = field(default_factory=dict)

    @property
    def fingerprint(self) -> str:
        return compute_fingerprint(self.category, self.subject, self.details)

    @property
    def normalized_message(self) -> str:
        return normalize_message(self.message)


__all__ = ["Deficiency", "compute_fingerprint", "normalize_message"]
