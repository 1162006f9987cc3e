from datetime import date

import pytest
from django.core.exceptions import ValidationError

from apps.common.exceptions import CapacityExceeded, HasActiveEnrollments, SubjectNotFound
from apps.registrations.models import Enrollment
from apps.subjects.models import Subject

pytestmark = pytest.mark.django_db


def test_create_subject_defaults(teacher):
    subject = Subject.objects.create_subject(teacher, title="Cryptographie", description="RSA, AES, ECC")

    assert subject.capacity == 2
    assert subject.enrolled == 0
    assert subject.status == Subject.Status.AVAILABLE
    assert subject.department == "Mathématiques"


def test_create_subject_rejects_unknown_field(teacher):
    with pytest.raises(TypeError):
        Subject.objects.create_subject(teacher, title="x", description="y", enrolled=3)


def test_increment_until_full(subject):
    subject = Subject.objects.increment_enrolled(subject.pk)
    assert subject.enrolled == 1
    assert subject.status == Subject.Status.AVAILABLE

    subject = Subject.objects.increment_enrolled(subject.pk)
    assert subject.enrolled == 2
    assert subject.status == Subject.Status.FULL


def test_increment_when_full_raises_and_leaves_counter(subject):
    Subject.objects.increment_enrolled(subject.pk)
    Subject.objects.increment_enrolled(subject.pk)

    with pytest.raises(CapacityExceeded):
        Subject.objects.increment_enrolled(subject.pk)

    subject.refresh_from_db()
    assert subject.enrolled == 2
    assert subject.status == Subject.Status.FULL


def test_last_place_goes_to_a_single_increment(make_subject):
    subject = make_subject(capacity=3)
    Subject.objects.filter(pk=subject.pk).update(enrolled=2)
    # deux approbations qui ont toutes deux vu une place libre
    first_reading = Subject.objects.get(pk=subject.pk)
    second_reading = Subject.objects.get(pk=subject.pk)
    assert not first_reading.is_full and not second_reading.is_full

    Subject.objects.increment_enrolled(first_reading.pk)
    with pytest.raises(CapacityExceeded):
        Subject.objects.increment_enrolled(second_reading.pk)

    subject.refresh_from_db()
    assert subject.enrolled == subject.capacity == 3
    assert subject.status == Subject.Status.FULL


def test_increment_unknown_subject():
    with pytest.raises(SubjectNotFound):
        Subject.objects.increment_enrolled(9999)


def test_decrement_reopens_full_subject(subject):
    Subject.objects.increment_enrolled(subject.pk)
    Subject.objects.increment_enrolled(subject.pk)

    subject = Subject.objects.decrement_enrolled(subject.pk)

    assert subject.enrolled == 1
    assert subject.status == Subject.Status.AVAILABLE


def test_decrement_is_floored_at_zero(subject):
    subject = Subject.objects.decrement_enrolled(subject.pk)

    assert subject.enrolled == 0
    assert subject.status == Subject.Status.AVAILABLE


def test_decrement_keeps_archived_status(make_subject):
    subject = make_subject(capacity=1)
    Subject.objects.increment_enrolled(subject.pk)
    Subject.objects.update_subject(subject.pk, status=Subject.Status.ARCHIVED)

    subject = Subject.objects.decrement_enrolled(subject.pk)

    assert subject.status == Subject.Status.ARCHIVED


def test_find_by_id_missing():
    with pytest.raises(SubjectNotFound):
        Subject.objects.find_by_id(12345)


def test_find_all_filters_and_sort(make_subject, make_teacher):
    other = make_teacher()
    first = make_subject(title="Transport urbain", keywords="optimisation", deadline=date(2025, 3, 20))
    second = make_subject(title="Érosion côtière", specialization="Mathématiques Appliquées", deadline=date(2025, 3, 10))
    third = make_subject(title="Chaos", owner=other)
    archived = make_subject(title="Ancien sujet", status=Subject.Status.ARCHIVED)

    assert list(Subject.objects.find_all(sort="deadline"))[:2] == [second, first]
    assert list(Subject.objects.find_all(sort="title"))[0] == archived
    assert list(Subject.objects.find_all(teacher=other)) == [third]
    assert list(Subject.objects.find_all(search="OPTIMISATION")) == [first]
    assert list(Subject.objects.find_all(specialization="Mathématiques Appliquées")) == [second]
    assert archived not in Subject.objects.find_all(available_only=True)
    assert len(Subject.objects.find_all(limit=2)) == 2


def test_find_all_available_only_excludes_full(make_subject):
    full = make_subject(capacity=1)
    Subject.objects.increment_enrolled(full.pk)
    open_subject = make_subject(capacity=1)

    assert list(Subject.objects.find_all(available_only=True)) == [open_subject]


def test_update_subject_allowed_fields(subject):
    updated = Subject.objects.update_subject(subject.pk, title="Nouveau titre", capacity=4)

    assert updated.title == "Nouveau titre"
    assert updated.capacity == 4


@pytest.mark.parametrize("field", ["enrolled", "teacher", "id"])
def test_update_subject_rejects_fields_outside_contract(subject, field):
    with pytest.raises(TypeError):
        Subject.objects.update_subject(subject.pk, **{field: 1})


def test_update_subject_rejects_capacity_below_enrolled(subject):
    Subject.objects.increment_enrolled(subject.pk)
    Subject.objects.increment_enrolled(subject.pk)

    with pytest.raises(ValidationError):
        Subject.objects.update_subject(subject.pk, capacity=1)


def test_update_subject_rejects_manual_full_status(subject):
    with pytest.raises(ValidationError):
        Subject.objects.update_subject(subject.pk, status=Subject.Status.FULL)


def test_raising_capacity_reopens_full_subject(make_subject):
    subject = make_subject(capacity=1)
    Subject.objects.increment_enrolled(subject.pk)

    subject = Subject.objects.update_subject(subject.pk, capacity=2)

    assert subject.status == Subject.Status.AVAILABLE


def test_reopening_full_subject_by_hand_stays_full(make_subject):
    subject = make_subject(capacity=1)
    Subject.objects.increment_enrolled(subject.pk)

    subject = Subject.objects.update_subject(subject.pk, status=Subject.Status.AVAILABLE)

    assert subject.status == Subject.Status.FULL


@pytest.mark.parametrize("new_status", [Subject.Status.IN_PROGRESS, Subject.Status.COMPLETED, Subject.Status.ARCHIVED])
def test_teacher_can_move_full_subject_forward(make_subject, new_status):
    subject = make_subject(capacity=1)
    Subject.objects.increment_enrolled(subject.pk)

    subject = Subject.objects.update_subject(subject.pk, status=new_status)

    subject.refresh_from_db()
    assert subject.status == new_status
    assert subject.enrolled == 1


def test_capacity_change_keeps_in_progress_status(make_subject):
    subject = make_subject(capacity=2)
    Subject.objects.increment_enrolled(subject.pk)
    Subject.objects.update_subject(subject.pk, status=Subject.Status.IN_PROGRESS)

    subject = Subject.objects.update_subject(subject.pk, capacity=1)

    assert subject.status == Subject.Status.IN_PROGRESS


def test_delete_subject_without_enrollments(subject):
    Subject.objects.delete_subject(subject.pk)

    assert not Subject.objects.filter(pk=subject.pk).exists()


def test_delete_subject_with_enrollments_fails(subject, make_student):
    Enrollment.objects.create_application(make_student(), subject)

    with pytest.raises(HasActiveEnrollments):
        Subject.objects.delete_subject(subject.pk)
    assert Subject.objects.filter(pk=subject.pk).exists()


def test_delete_subject_with_only_rejected_enrollments_fails(subject, make_student):
    enrollment = Enrollment.objects.create_application(make_student(), subject)
    Enrollment.objects.reject(enrollment.pk, "hors sujet")

    with pytest.raises(HasActiveEnrollments):
        Subject.objects.delete_subject(subject.pk)
