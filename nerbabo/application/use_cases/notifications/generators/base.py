"""Contract shared by every deficiency generator."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field

from nerbabo.domain.entities import Deficiency, NotificationType, SubjectRef
from nerbabo.domain.exceptions import SubjectProcessingError


@dataclass
class GenerationReport:
    """Deficiencies found by a generator plus the subjects it had to skip.

    ``compliant_subjects`` lists subjects that were evaluated and currently
    satisfy the check. Their acknowledged notifications are dropped too, so a
    recurring deficiency raises a fresh unread alert. Subjects that left the
    generator's scope are not listed there and keep their read history.
    """

    deficiencies: list[Deficiency] = field(default_factory=list)
    subject_errors: list[SubjectProcessingError] = field(default_factory=list)
    compliant_subjects: set[SubjectRef] = field(default_factory=set)

    @property
    def skipped_subjects(self) -> set[SubjectRef]:
        return {error.subject for error in self.subject_errors}


class NotificationGenerator(ABC):
    """Compute the deficiencies of one category and spot obsolete notifications.

    Implementations read subject data only; every write to the notification
    table goes through the reconciler. Each generator owns the notifications
    matching its ``category`` and ``subject_type``; records whose origin tag
    differs from ``current_origin`` were produced by an earlier format.
    """

    generator_id: str
    description: str
    category: NotificationType
    subject_type: str
    current_origin: str

    @abstractmethod
    def generate(self) -> GenerationReport:
        """Return one deficiency per subject that currently fails the check.

        Subjects that cannot be evaluated are reported in
        :attr:`GenerationReport.subject_errors` instead of raising. A failure
        of the data source raises :class:`~nerbabo.domain.exceptions.GeneratorFailure`.
        """

    @abstractmethod
    def find_obsolete(self) -> Sequence[int]:
        """Return ids of unread notifications whose deficiency no longer holds."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.generator_id}>"


__all__ = ["GenerationReport", "NotificationGenerator"]
