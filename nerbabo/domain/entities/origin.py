"""Origin tags distinguishing current-format from legacy notifications."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class CurrentOrigin:
    """Record produced by the generation logic currently in use."""

    tag: str


@dataclass(frozen=True)
class LegacyOrigin:
    """Record produced by an older shape of the generation logic."""

    variant: str | None


OriginTag = Union[CurrentOrigin, LegacyOrigin]


def classify_origin(raw_tag: str | None, current_tag: str) -> OriginTag:
    """Map a stored origin tag onto the current/legacy variants.

    Anything other than ``current_tag`` (including a missing tag) was written
    by an earlier format and is reported as :class:`LegacyOrigin`.
    """

    if raw_tag == current_tag:
        return CurrentOrigin(tag=current_tag)
    return LegacyOrigin(variant=raw_tag)


__all__ = ["CurrentOrigin", "LegacyOrigin", "OriginTag", "classify_origin"]
