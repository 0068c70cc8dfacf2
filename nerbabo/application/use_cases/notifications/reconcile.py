"""Bring persisted notifications in line with the deficiencies that hold now.

For every registered generator the reconciler loads the notifications of its
category, groups them per subject and decides, subject by subject, whether to
create, update in place, drop duplicates or delete. Each subject runs inside
a SAVEPOINT and each generator is committed on its own, so a failure is
contained to the subject or category where it happened.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from nerbabo.config import Settings
from nerbabo.domain.entities import (
    CategorySummary,
    CurrentOrigin,
    Deficiency,
    LegacyOrigin,
    Notification,
    NotificationStatus,
    RunSummary,
    SubjectRef,
    classify_origin,
    normalize_message,
)
from nerbabo.domain.exceptions import GeneratorFailure, StorageConflict, StorageFailure
from nerbabo.infrastructure.repositories import NotificationRepository
from nerbabo.utils import app_now
from .generators import GenerationReport, NotificationGenerator
from .registry import build_generators

logger = logging.getLogger(__name__)

_OLDEST = datetime.min


@dataclass
class _SubjectChanges:
    created: int = 0
    updated: int = 0
    deleted: int = 0
    skipped_duplicate: int = 0
    conflicts: int = 0

    def merge_into(self, summary: CategorySummary) -> None:
        summary.created += self.created
        summary.updated += self.updated
        summary.deleted += self.deleted
        summary.skipped_duplicate += self.skipped_duplicate
        summary.conflicts += self.conflicts


@dataclass
class _SubjectRecords:
    """Persisted notifications of one subject split by format and status."""

    current_unread: list[Notification]
    acknowledged: list[Notification]
    legacy: list[Notification]


def _recency(notification: Notification) -> tuple[datetime, int]:
    stamp = notification.read_at or notification.updated_at or notification.created_at
    naive = stamp.replace(tzinfo=None) if stamp is not None else _OLDEST
    return naive, notification.id or 0


def _partition(records: Iterable[Notification], current_origin: str) -> _SubjectRecords:
    current_unread: list[Notification] = []
    acknowledged: list[Notification] = []
    legacy: list[Notification] = []
    for record in records:
        origin = classify_origin(record.origin_tag, current_origin)
        if isinstance(origin, LegacyOrigin):
            legacy.append(record)
        elif isinstance(origin, CurrentOrigin):
            if record.is_unread:
                current_unread.append(record)
            else:
                acknowledged.append(record)
        else:
            raise TypeError(f"Unsupported origin tag {origin!r}")
    current_unread.sort(key=_recency, reverse=True)
    acknowledged.sort(key=_recency, reverse=True)
    return _SubjectRecords(current_unread, acknowledged, legacy)


def _same_content(notification: Notification, deficiency: Deficiency, fingerprint: str) -> bool:
    if notification.fingerprint:
        return notification.fingerprint == fingerprint
    return normalize_message(notification.message) == deficiency.normalized_message


class NotificationReconciler:
    """Run generators and apply the resulting create/update/delete decisions."""

    def __init__(
        self,
        session: Session,
        generators: Sequence[NotificationGenerator],
        *,
        clock: Callable[[], datetime] = app_now,
    ) -> None:
        self.session = session
        self.generators = list(generators)
        self.repository = NotificationRepository(session)
        self.clock = clock

    def reconcile(self) -> RunSummary:
        """Reconcile every generator in turn. Never raises."""

        logger.info("Starting notification reconciliation with %s generators.", len(self.generators))
        summary = RunSummary()
        for generator in self.generators:
            try:
                category = self._reconcile_generator(generator)
            except Exception as exc:  # a broken generator must not stop the others
                logger.exception("Unexpected error while running generator %s", generator.generator_id)
                self._rollback()
                category = CategorySummary(generator_id=generator.generator_id, error=str(exc))
            summary.add(category)

        logger.info(
            "Notification reconciliation completed. Created: %s, Updated: %s, Deleted: %s, "
            "Skipped duplicates: %s, Failed categories: %s",
            summary.created,
            summary.updated,
            summary.deleted,
            summary.skipped_duplicate,
            len(summary.per_category_errors),
        )
        return summary

    def _reconcile_generator(self, generator: NotificationGenerator) -> CategorySummary:
        summary = CategorySummary(generator_id=generator.generator_id)
        logger.info("Running generator: %s - %s", generator.generator_id, generator.description)

        try:
            report = generator.generate()
            obsolete_ids = set(generator.find_obsolete())
            existing = self.repository.find(generator.category, subject_type=generator.subject_type)
        except GeneratorFailure as exc:
            logger.warning("Skipping generator %s: %s", generator.generator_id, exc.reason)
            self._rollback()
            summary.error = str(exc)
            return summary
        except SQLAlchemyError as exc:
            logger.exception("Could not load notifications for generator %s", generator.generator_id)
            self._rollback()
            summary.error = str(GeneratorFailure(generator.generator_id, str(exc)))
            return summary

        summary.subject_errors.extend(str(error) for error in report.subject_errors)
        deficiencies = self._index_deficiencies(generator, report)
        skipped = report.skipped_subjects
        compliant = report.compliant_subjects

        grouped: dict[SubjectRef, list[Notification]] = defaultdict(list)
        for notification in existing:
            # Untagged rows are manual alerts and belong to no generator.
            if notification.subject is not None and notification.origin_tag is not None:
                grouped[notification.subject].append(notification)

        subjects = sorted(
            set(deficiencies) | set(grouped),
            key=lambda subject: (subject.subject_type, subject.subject_id),
        )
        for subject in subjects:
            records = _partition(grouped.get(subject, []), generator.current_origin)
            try:
                with self.session.begin_nested():
                    if subject in deficiencies:
                        changes = self._apply_deficiency(generator, deficiencies[subject], records)
                    elif subject in skipped:
                        changes = self._apply_obsolete(subject, records, obsolete_ids)
                    else:
                        changes = self._apply_resolution(
                            subject, records, drop_acknowledged=subject in compliant
                        )
            except SQLAlchemyError as exc:
                logger.exception("Could not reconcile %s for %s", subject, generator.generator_id)
                summary.subject_errors.append(f"{subject}: {exc}")
                continue
            changes.merge_into(summary)

        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            failure = StorageFailure(generator.generator_id, str(exc))
            logger.exception("%s", failure)
            self._rollback()
            summary.discard_counts()
            summary.error = str(failure)
            return summary

        logger.info(
            "Generator %s: created %s, updated %s, deleted %s, skipped %s duplicates.",
            generator.generator_id,
            summary.created,
            summary.updated,
            summary.deleted,
            summary.skipped_duplicate,
        )
        return summary

    @staticmethod
    def _index_deficiencies(
        generator: NotificationGenerator, report: GenerationReport
    ) -> dict[SubjectRef, Deficiency]:
        indexed: dict[SubjectRef, Deficiency] = {}
        for deficiency in report.deficiencies:
            if deficiency.subject.subject_type != generator.subject_type:
                logger.warning(
                    "Generator %s reported a deficiency for foreign subject %s; ignoring it",
                    generator.generator_id,
                    deficiency.subject,
                )
                continue
            if deficiency.subject in indexed:
                logger.warning(
                    "Generator %s reported %s more than once; keeping the first deficiency",
                    generator.generator_id,
                    deficiency.subject,
                )
                continue
            indexed[deficiency.subject] = deficiency
        return indexed

    def _apply_deficiency(
        self,
        generator: NotificationGenerator,
        deficiency: Deficiency,
        records: _SubjectRecords,
    ) -> _SubjectChanges:
        changes = _SubjectChanges()
        subject = deficiency.subject
        fingerprint = deficiency.fingerprint
        to_delete: list[Notification] = []

        keeper = records.current_unread[0] if records.current_unread else None
        if len(records.current_unread) > 1:
            to_delete.extend(records.current_unread[1:])
            logger.info(
                "Removing %s duplicate unread notifications for %s",
                len(records.current_unread) - 1,
                subject,
            )

        matching = [
            notification
            for notification in records.acknowledged
            if _same_content(notification, deficiency, fingerprint)
        ]

        if keeper is not None:
            # Rows without a stored fingerprint are rewritten once to backfill it.
            if keeper.fingerprint != fingerprint or keeper.action_url != deficiency.action_url:
                self.repository.update_content(
                    keeper.id,
                    title=deficiency.title,
                    message=deficiency.message,
                    fingerprint=fingerprint,
                    action_url=deficiency.action_url,
                    updated_at=self.clock(),
                    commit=False,
                )
                changes.updated += 1
                logger.info("Updated notification %s for %s", keeper.id, subject)
        elif matching:
            changes.skipped_duplicate += 1
            logger.info(
                "Found %s read notifications with same content for %s - skipping creation",
                len(matching),
                subject,
            )
        else:
            self._create(generator, deficiency, fingerprint, changes)

        retained = matching[0] if matching else (records.acknowledged[0] if records.acknowledged else None)
        to_delete.extend(
            notification for notification in records.acknowledged if notification is not retained
        )
        if records.legacy:
            logger.info("Removing %s legacy notifications for %s", len(records.legacy), subject)
            to_delete.extend(records.legacy)

        changes.deleted += self._delete(to_delete)
        return changes

    def _apply_resolution(
        self,
        subject: SubjectRef,
        records: _SubjectRecords,
        *,
        drop_acknowledged: bool,
    ) -> _SubjectChanges:
        """Drop the records of a subject whose deficiency is gone.

        Unread and legacy records always go. Acknowledged current-format
        records go only for a subject the generator evaluated as compliant;
        otherwise the subject left the generator's scope and they stay as
        read history.
        """

        changes = _SubjectChanges()
        to_delete = records.current_unread + records.legacy
        if drop_acknowledged:
            to_delete = to_delete + records.acknowledged
        if to_delete:
            logger.info("Removing %s resolved notifications for %s", len(to_delete), subject)
        changes.deleted += self._delete(to_delete)
        return changes

    def _apply_obsolete(
        self,
        subject: SubjectRef,
        records: _SubjectRecords,
        obsolete_ids: set[int],
    ) -> _SubjectChanges:
        """Handle a subject the generator skipped: only trust its cleanup answer."""

        changes = _SubjectChanges()
        to_delete = [
            notification
            for notification in records.current_unread + records.legacy
            if notification.id in obsolete_ids
        ]
        changes.deleted += self._delete(to_delete)
        return changes

    def _create(
        self,
        generator: NotificationGenerator,
        deficiency: Deficiency,
        fingerprint: str,
        changes: _SubjectChanges,
    ) -> None:
        concurrent = self.repository.find_unread(
            deficiency.category, deficiency.subject, origin_tag=generator.current_origin
        )
        if concurrent is not None:
            logger.warning(
                "Unread notification %s for %s was created concurrently; leaving it in place",
                concurrent.id,
                deficiency.subject,
            )
            changes.conflicts += 1
            return

        now = self.clock()
        notification = Notification(
            id=None,
            title=deficiency.title,
            message=deficiency.message,
            type=deficiency.category,
            status=NotificationStatus.UNREAD,
            subject=deficiency.subject,
            origin_tag=generator.current_origin,
            fingerprint=fingerprint,
            action_url=deficiency.action_url,
            created_at=now,
            updated_at=now,
        )
        try:
            saved = self.repository.insert(notification, commit=False)
        except StorageConflict as exc:
            logger.warning("%s; treating it as already created", exc)
            changes.conflicts += 1
            return
        changes.created += 1
        logger.info("Created notification %s for %s", saved.id, deficiency.subject)

    def _delete(self, notifications: Iterable[Notification]) -> int:
        ids = [notification.id for notification in notifications if notification.id is not None]
        if not ids:
            return 0
        return self.repository.delete_many(ids, commit=False)

    def _rollback(self) -> None:
        try:
            self.session.rollback()
        except SQLAlchemyError:
            logger.exception("Rollback failed")


def reconcile_notifications(
    session: Session,
    *,
    generators: Sequence[NotificationGenerator] | None = None,
    settings: Settings | None = None,
) -> RunSummary:
    """Run every registered generator against ``session`` and return the summary."""

    if generators is None:
        generators = build_generators(session, settings)
    return NotificationReconciler(session, generators).reconcile()


__all__ = ["NotificationReconciler", "reconcile_notifications"]
