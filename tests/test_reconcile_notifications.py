"""Tests for the notification reconciliation use case."""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from nerbabo.application.use_cases.notifications import (
    GenerationReport,
    MissingPersonDocumentGenerator,
    NotificationGenerator,
    NotificationReconciler,
    mark_notification_as_read,
    reconcile_notifications,
)
from nerbabo.domain.entities import (
    Deficiency,
    Notification,
    NotificationStatus,
    NotificationType,
    SubjectRef,
)
from nerbabo.domain.exceptions import GeneratorFailure
from nerbabo.infrastructure.repositories import NotificationRepository

IBAN = "PT50000201231234567890154"


def _reconcile(session):
    return reconcile_notifications(session, generators=[MissingPersonDocumentGenerator(session)])


def _stored(session, person_id: int | None = None) -> list[Notification]:
    subject = SubjectRef("person", person_id) if person_id is not None else None
    return NotificationRepository(session).find(NotificationType.MISSING_DOCUMENT, subject)


def _insert(session, person_id: int, **overrides) -> Notification:
    values = {
        "id": None,
        "title": "Documento em Falta",
        "message": "Documentação em falta.",
        "type": NotificationType.MISSING_DOCUMENT,
        "status": NotificationStatus.UNREAD,
        "subject": SubjectRef("person", person_id),
        "origin_tag": "MissingDocuments",
    }
    values.update(overrides)
    return NotificationRepository(session).insert(Notification(**values))


def _assert_single_unread(session) -> None:
    unread = Counter(
        (notification.subject, notification.origin_tag)
        for notification in _stored(session)
        if notification.is_unread
    )
    assert all(count == 1 for count in unread.values()), unread


class _BrokenGenerator(NotificationGenerator):
    generator_id = "BrokenCourses"
    description = "Always fails."
    category = NotificationType.INCOMPLETE_INFORMATION
    subject_type = "course"
    current_origin = "IncompleteCourse"

    def __init__(self, error: Exception) -> None:
        self.error = error

    def generate(self) -> GenerationReport:
        raise self.error

    def find_obsolete(self) -> list[int]:
        return []


def test_example_scenario_create_update_delete(session, add_person, update_person):
    add_person(123, iban=IBAN, habilitation_comprovative_pdf_id=5)

    first = _reconcile(session)

    assert (first.created, first.updated, first.deleted) == (1, 0, 0)
    [notification] = _stored(session, 123)
    assert notification.is_unread
    assert notification.origin_tag == "MissingDocuments"
    assert notification.message.splitlines()[-2:] == [
        "- Cópia do Documento de Identificação",
        "- Comprovativo de IBAN",
    ]

    update_person(123, identification_document_pdf_id=9)
    second = _reconcile(session)

    assert (second.created, second.updated, second.deleted) == (0, 1, 0)
    [updated] = _stored(session, 123)
    assert updated.id == notification.id
    assert updated.title == "Documento em Falta"
    assert updated.message.splitlines()[-1] == "- Comprovativo de IBAN"
    assert "Identificação" not in updated.message

    update_person(123, iban_comprovative_pdf_id=10)
    third = _reconcile(session)

    assert (third.created, third.updated, third.deleted) == (0, 0, 1)
    assert _stored(session, 123) == []


def test_second_run_without_changes_is_a_no_op(session, add_person):
    add_person(1)
    add_person(2, iban=IBAN)
    add_person(3, identification_document_pdf_id=1, habilitation_comprovative_pdf_id=2)

    first = _reconcile(session)
    snapshot = [(n.id, n.title, n.message, n.status) for n in _stored(session)]
    second = _reconcile(session)

    assert first.created == 2
    assert (second.created, second.updated, second.deleted, second.skipped_duplicate) == (0, 0, 0, 0)
    assert [(n.id, n.title, n.message, n.status) for n in _stored(session)] == snapshot


def test_read_notification_with_same_content_is_not_recreated(session, add_person):
    add_person(1)
    _reconcile(session)
    [notification] = _stored(session, 1)
    read = mark_notification_as_read(session, notification.id, actor="user-1")

    summary = _reconcile(session)

    assert summary.created == 0
    assert summary.skipped_duplicate == 1
    [remaining] = _stored(session, 1)
    assert remaining.id == notification.id
    assert remaining.status is NotificationStatus.READ
    assert remaining.read_by == "user-1"
    assert remaining.origin_tag == read.origin_tag == "MissingDocuments"


def test_changed_content_after_read_creates_a_new_unread(session, add_person, update_person):
    add_person(1)
    _reconcile(session)
    [read] = _stored(session, 1)
    mark_notification_as_read(session, read.id, actor="user-1")

    update_person(1, identification_document_pdf_id=4)
    summary = _reconcile(session)

    assert summary.created == 1
    statuses = sorted(n.status.value for n in _stored(session, 1))
    assert statuses == ["Read", "Unread"]
    assert _reconcile(session).created == 0


def test_read_record_without_fingerprint_is_compared_by_normalized_body(session, add_person):
    add_person(1)
    deficiency = MissingPersonDocumentGenerator(session).generate().deficiencies[0]
    _insert(
        session,
        1,
        title=deficiency.title,
        message=deficiency.message.replace("\n", "\r\n") + "  \r\n",
        status=NotificationStatus.READ,
        fingerprint=None,
    )

    summary = _reconcile(session)

    assert summary.skipped_duplicate == 1
    assert summary.created == 0
    assert [n.status for n in _stored(session, 1)] == [NotificationStatus.READ]


def test_unread_record_without_fingerprint_is_backfilled_once(session, add_person):
    add_person(1)
    deficiency = MissingPersonDocumentGenerator(session).generate().deficiencies[0]
    stored = _insert(session, 1, title=deficiency.title, message=deficiency.message, fingerprint=None)

    first = _reconcile(session)
    second = _reconcile(session)

    assert first.updated == 1
    assert second.updated == 0
    [notification] = _stored(session, 1)
    assert notification.id == stored.id
    assert notification.fingerprint == deficiency.fingerprint


def test_resolved_unread_notification_is_deleted(session, add_person, update_person):
    add_person(1, habilitation_comprovative_pdf_id=2)
    _reconcile(session)

    update_person(1, identification_document_pdf_id=3)
    summary = _reconcile(session)

    assert summary.deleted == 1
    assert summary.created == 0
    assert _stored(session, 1) == []


def test_recurring_deficiency_raises_a_new_unread_alert(session, add_person, update_person):
    add_person(1, habilitation_comprovative_pdf_id=2)
    _reconcile(session)
    [notification] = _stored(session, 1)
    mark_notification_as_read(session, notification.id, actor="user-1")

    update_person(1, identification_document_pdf_id=3)
    resolved = _reconcile(session)

    assert resolved.deleted == 1
    assert _stored(session, 1) == []

    update_person(1, identification_document_pdf_id=None)
    recurred = _reconcile(session)

    assert recurred.created == 1
    assert recurred.skipped_duplicate == 0
    [alert] = _stored(session, 1)
    assert alert.is_unread
    assert alert.id != notification.id


def test_read_history_is_kept_when_person_leaves_scope(session, add_person, update_person):
    add_person(1)
    _reconcile(session)
    [notification] = _stored(session, 1)
    mark_notification_as_read(session, notification.id, actor="user-1")

    update_person(1, habilitation="WithoutProof")
    summary = _reconcile(session)

    assert summary.deleted == 0
    assert [n.id for n in _stored(session, 1)] == [notification.id]


def test_unread_notification_follows_new_deep_link(session, add_person):
    add_person(1)
    _reconcile(session)

    relinked = MissingPersonDocumentGenerator(session, people_url_template="/pessoas/{person_id}")
    summary = reconcile_notifications(session, generators=[relinked])

    assert summary.updated == 1
    [notification] = _stored(session, 1)
    assert notification.action_url == "/pessoas/1"
    assert reconcile_notifications(session, generators=[relinked]).updated == 0


def test_person_no_longer_eligible_loses_unread_notification(session, add_person, update_person):
    add_person(1)
    _reconcile(session)

    update_person(1, habilitation="WithoutProof")
    summary = _reconcile(session)

    assert summary.deleted == 1
    assert _stored(session, 1) == []


def test_notification_of_deleted_person_is_removed(session):
    _insert(session, 77)

    summary = _reconcile(session)

    assert summary.deleted == 1
    assert _stored(session) == []


def test_legacy_records_are_replaced_by_current_format(session, add_person):
    add_person(1, iban=IBAN)
    _insert(session, 1, origin_tag="IdentificationDocument")
    _insert(session, 1, origin_tag="IbanComprovative", status=NotificationStatus.READ)
    _insert(session, 1, origin_tag="Person", status=NotificationStatus.ARCHIVED)

    summary = _reconcile(session)

    assert summary.created == 1
    assert summary.deleted == 3
    [notification] = _stored(session, 1)
    assert notification.origin_tag == "MissingDocuments"
    assert notification.is_unread


def test_legacy_records_of_resolved_person_are_removed(session, add_person):
    add_person(1, identification_document_pdf_id=1, habilitation_comprovative_pdf_id=2)
    _insert(session, 1, origin_tag="IdentificationDocument")
    _insert(session, 1, origin_tag="HabilitationComprovative", status=NotificationStatus.READ)

    summary = _reconcile(session)

    assert summary.deleted == 2
    assert _stored(session, 1) == []


def test_acknowledged_duplicates_are_capped_at_one(session, add_person):
    add_person(1)
    base = datetime(2024, 5, 1, tzinfo=timezone.utc)
    for offset in range(3):
        _insert(
            session,
            1,
            message=f"Versão {offset}",
            status=NotificationStatus.READ,
            read_at=base + timedelta(days=offset),
        )

    summary = _reconcile(session)

    assert summary.created == 1
    assert summary.deleted == 2
    read = [n for n in _stored(session, 1) if not n.is_unread]
    assert [n.message for n in read] == ["Versão 2"]
    _assert_single_unread(session)


def test_single_unread_invariant_holds_across_runs(session, add_person, update_person):
    add_person(1, iban=IBAN)
    add_person(2)
    _insert(session, 1, origin_tag="IdentificationDocument")

    for changes in (
        {},
        {"identification_document_pdf_id": 1},
        {"iban": None},
        {"habilitation_comprovative_pdf_id": 3},
        {"habilitation_comprovative_pdf_id": None},
    ):
        if changes:
            update_person(1, **changes)
        _reconcile(session)
        _assert_single_unread(session)


def test_corrupt_person_keeps_existing_notification(session, add_person):
    add_person(1, habilitation="Desconhecida")
    stored = _insert(session, 1)

    summary = _reconcile(session)

    assert summary.deleted == 0
    assert summary.per_category_errors == {}
    [category] = summary.categories
    assert len(category.subject_errors) == 1
    assert [n.id for n in _stored(session, 1)] == [stored.id]


def test_resolved_notification_of_skipped_person_is_cleaned(session, add_person):
    add_person(
        1,
        habilitation="Desconhecida",
        identification_document_pdf_id=1,
        habilitation_comprovative_pdf_id=2,
    )
    _insert(session, 1)

    summary = _reconcile(session)

    assert summary.deleted == 1
    assert len(summary.categories[0].subject_errors) == 1
    assert _stored(session, 1) == []


def test_generator_failure_does_not_block_other_generators(session, add_person):
    add_person(1)
    broken = _BrokenGenerator(GeneratorFailure("BrokenCourses", "source unreachable"))

    summary = reconcile_notifications(
        session, generators=[broken, MissingPersonDocumentGenerator(session)]
    )

    assert summary.created == 1
    assert "source unreachable" in summary.per_category_errors["BrokenCourses"]
    assert "MissingPersonDocument" not in summary.per_category_errors


def test_unexpected_generator_error_is_reported(session, add_person, caplog):
    add_person(1)
    broken = _BrokenGenerator(RuntimeError("boom"))

    with caplog.at_level("ERROR"):
        summary = reconcile_notifications(
            session, generators=[MissingPersonDocumentGenerator(session), broken]
        )

    assert summary.created == 1
    assert summary.per_category_errors == {"BrokenCourses": "boom"}
    assert "BrokenCourses" in caplog.text


def test_failed_commit_discards_the_category(session, add_person, monkeypatch):
    add_person(1)
    original_commit = session.commit
    calls = {"count": 0}

    def failing_commit():
        calls["count"] += 1
        if calls["count"] == 1:
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))
        original_commit()

    monkeypatch.setattr(session, "commit", failing_commit)

    summary = _reconcile(session)

    assert summary.created == 0
    assert "disk I/O error" in summary.per_category_errors["MissingPersonDocument"]
    assert _stored(session) == []

    monkeypatch.setattr(session, "commit", original_commit)
    assert _reconcile(session).created == 1


def test_storage_error_on_one_subject_spares_the_others(session, add_person, monkeypatch):
    add_person(1)
    add_person(2)
    original_insert = NotificationRepository.insert

    def flaky_insert(self, notification, *, commit=True):
        if notification.subject.subject_id == 1:
            raise OperationalError("INSERT", {}, Exception("database is locked"))
        return original_insert(self, notification, commit=commit)

    monkeypatch.setattr(NotificationRepository, "insert", flaky_insert)

    summary = _reconcile(session)

    assert summary.created == 1
    assert summary.per_category_errors == {}
    [category] = summary.categories
    assert len(category.subject_errors) == 1
    assert [n.subject.subject_id for n in _stored(session)] == [2]


def test_concurrently_created_unread_is_detected_before_insert(session, add_person, monkeypatch):
    add_person(1)
    _insert(session, 1, message="Criada por outra execução.")
    monkeypatch.setattr(NotificationRepository, "find", lambda self, *args, **kwargs: [])

    summary = _reconcile(session)

    assert summary.created == 0
    assert summary.per_category_errors == {}
    assert summary.categories[0].conflicts == 1
    monkeypatch.undo()
    assert len(_stored(session, 1)) == 1


def test_unique_violation_on_insert_is_benign(session, add_person, monkeypatch):
    add_person(1)
    _insert(session, 1, message="Criada por outra execução.")
    monkeypatch.setattr(NotificationRepository, "find", lambda self, *args, **kwargs: [])
    monkeypatch.setattr(NotificationRepository, "find_unread", lambda self, *args, **kwargs: None)

    summary = _reconcile(session)

    assert summary.created == 0
    assert summary.per_category_errors == {}
    assert summary.categories[0].conflicts == 1
    monkeypatch.undo()
    assert len(_stored(session, 1)) == 1


def test_deficiencies_of_foreign_subjects_are_ignored(session):
    class _Foreign(NotificationGenerator):
        generator_id = "Foreign"
        description = "Reports subjects it does not own."
        category = NotificationType.GENERAL_ALERT
        subject_type = "course"
        current_origin = "Foreign"

        def generate(self) -> GenerationReport:
            return GenerationReport(
                deficiencies=[
                    Deficiency(
                        subject=SubjectRef("person", 1),
                        category=NotificationType.GENERAL_ALERT,
                        title="Alerta",
                        message="Mensagem",
                        action_url=None,
                    )
                ]
            )

        def find_obsolete(self) -> list[int]:
            return []

    summary = NotificationReconciler(session, [_Foreign()]).reconcile()

    assert summary.created == 0
    assert NotificationRepository(session).count() == 0


def test_reconcile_uses_registered_generators(session, add_person):
    add_person(1)

    summary = reconcile_notifications(session)

    assert [category.generator_id for category in summary.categories] == ["MissingPersonDocument"]
    assert summary.created == 1
    [notification] = _stored(session, 1)
    assert notification.action_url == "/people/1"


@pytest.mark.parametrize("runs", [2, 3])
def test_repeated_runs_converge(session, add_person, runs):
    add_person(1, iban=IBAN)
    _insert(session, 1, origin_tag="Person")

    _reconcile(session)
    summaries = [_reconcile(session) for _ in range(runs)]

    assert all(
        (s.created, s.updated, s.deleted, s.skipped_duplicate) == (0, 0, 0, 0) for s in summaries
    )
