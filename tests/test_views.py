import pytest
from django.core.cache import cache
from django.urls import reverse

from apps.registrations.models import Enrollment
from apps.registrations.services import coordinator
from apps.subjects.models import Subject
from apps.subjects.signals import AVAILABLE_SUBJECTS_CACHE_KEY
from apps.users.models import User

pytestmark = pytest.mark.django_db


def test_anonymous_request_is_rejected(api_client):
    response = api_client.get(reverse("subject-list"))

    assert response.status_code == 401


def test_student_applies_to_subject(as_user, subject, make_student):
    student = make_student()

    response = as_user(student.user).post(
        reverse("enrollment-apply"), {"subject_id": subject.pk, "motivation": "Passionné"}, format="json"
    )

    assert response.status_code == 201
    enrollment = Enrollment.objects.get(pk=response.data["enrollment_id"])
    assert response.data["status"] == "pending"
    assert enrollment.student == student
    assert enrollment.student_motivation == "Passionné"


def test_duplicate_application_maps_to_conflict(as_user, subject, make_student):
    client = as_user(make_student().user)
    client.post(reverse("enrollment-apply"), {"subject_id": subject.pk}, format="json")

    response = client.post(reverse("enrollment-apply"), {"subject_id": subject.pk}, format="json")

    assert response.status_code == 409
    assert response.data["kind"] == "DuplicateApplication"
    assert response.data["message"] == "Vous avez déjà postulé à ce sujet."


def test_apply_to_unknown_subject(as_user, make_student):
    response = as_user(make_student().user).post(reverse("enrollment-apply"), {"subject_id": 999}, format="json")

    assert response.status_code == 404
    assert response.data["kind"] == "NotFound"


def test_teacher_cannot_apply(as_user, subject, teacher):
    response = as_user(teacher.user).post(reverse("enrollment-apply"), {"subject_id": subject.pk}, format="json")

    assert response.status_code == 403


def test_owner_approves_application(as_user, subject, teacher, make_student):
    enrollment = coordinator.apply(make_student().pk, subject.pk)

    response = as_user(teacher.user).put(
        reverse("enrollment-approve", args=[enrollment.pk]), {"notes": "Très bon profil"}, format="json"
    )

    assert response.status_code == 200
    assert response.data == {"enrollment_id": enrollment.pk, "status": "approved", "subject_enrolled_count": 1}


def test_approve_full_subject_maps_to_conflict(as_user, make_subject, teacher, make_student):
    subject = make_subject(capacity=1)
    coordinator.approve(coordinator.apply(make_student().pk, subject.pk).pk)
    waiting = coordinator.apply(make_student().pk, subject.pk)

    response = as_user(teacher.user).put(reverse("enrollment-approve", args=[waiting.pk]), {}, format="json")

    assert response.status_code == 409
    assert response.data["kind"] == "CapacityExceeded"


def test_approve_for_already_assigned_student_maps_to_conflict(as_user, make_subject, teacher, make_student):
    student = make_student()
    coordinator.approve(coordinator.apply(student.pk, make_subject().pk).pk)
    late = Enrollment.objects.create(student=student, subject=make_subject())

    response = as_user(teacher.user).put(reverse("enrollment-approve", args=[late.pk]), {}, format="json")

    assert response.status_code == 409
    assert response.data["kind"] == "AlreadyHasApprovedSubject"


def test_other_teacher_cannot_approve(as_user, subject, make_teacher, make_student):
    enrollment = coordinator.apply(make_student().pk, subject.pk)

    response = as_user(make_teacher().user).put(reverse("enrollment-approve", args=[enrollment.pk]), {}, format="json")

    assert response.status_code == 403
    enrollment.refresh_from_db()
    assert enrollment.status == Enrollment.Status.PENDING


def test_owner_rejects_application(as_user, subject, teacher, make_student):
    enrollment = coordinator.apply(make_student().pk, subject.pk)

    response = as_user(teacher.user).put(
        reverse("enrollment-reject", args=[enrollment.pk]), {"notes": "incomplete motivation"}, format="json"
    )

    assert response.status_code == 200
    assert response.data == {"enrollment_id": enrollment.pk, "status": "rejected"}
    enrollment.refresh_from_db()
    assert enrollment.teacher_notes == "incomplete motivation"


def test_reject_unknown_enrollment(as_user, teacher):
    response = as_user(teacher.user).put(reverse("enrollment-reject", args=[404]), {}, format="json")

    assert response.status_code == 404
    assert response.data["kind"] == "NotFound"


def test_my_enrollments(as_user, make_subject, make_student):
    student = make_student()
    coordinator.apply(student.pk, make_subject(title="Cryptographie").pk)

    response = as_user(student.user).get(reverse("enrollment-me"))

    assert response.status_code == 200
    assert [e["title"] for e in response.data["enrollments"]] == ["Cryptographie"]


def test_teacher_applications_filtered_by_status(as_user, subject, teacher, make_student):
    pending = coordinator.apply(make_student().pk, subject.pk)
    rejected = coordinator.apply(make_student().pk, subject.pk)
    coordinator.reject(rejected.pk)

    response = as_user(teacher.user).get(reverse("enrollment-applications"), {"status": "pending"})

    assert response.status_code == 200
    assert [a["id"] for a in response.data["applications"]] == [pending.pk]


def test_unknown_status_filter(as_user, teacher):
    response = as_user(teacher.user).get(reverse("enrollment-applications"), {"status": "graded"})

    assert response.status_code == 400


def test_supervised_students(as_user, subject, teacher, make_student):
    student = make_student("Ahmed Salem")
    coordinator.approve(coordinator.apply(student.pk, subject.pk).pk)
    coordinator.apply(make_student().pk, subject.pk)

    response = as_user(teacher.user).get(reverse("enrollment-students"))

    assert [s["student_name"] for s in response.data["students"]] == ["Ahmed Salem"]


def test_subject_enrollments_for_owner(as_user, subject, teacher, make_student):
    coordinator.approve(coordinator.apply(make_student().pk, subject.pk).pk)
    coordinator.apply(make_student().pk, subject.pk)

    response = as_user(teacher.user).get(reverse("enrollment-by-subject", args=[subject.pk]))

    assert response.status_code == 200
    assert response.data["counts"] == {"approved": 1, "pending": 1}
    assert response.data["enrolled"] == 1


def test_teacher_creates_subject(as_user, teacher):
    response = as_user(teacher.user).post(
        reverse("subject-list"),
        {"title": "Érosion côtière", "description": "Modèles EDP", "capacity": 3, "enrolled": 3},
        format="json",
    )

    assert response.status_code == 201
    assert response.data["enrolled"] == 0
    assert response.data["teacher"] == teacher.pk
    assert response.data["status"] == "available"


def test_student_cannot_create_subject(as_user, make_student):
    response = as_user(make_student().user).post(
        reverse("subject-list"), {"title": "x", "description": "y"}, format="json"
    )

    assert response.status_code == 403


def test_patch_ignores_counter_fields(as_user, subject, teacher):
    response = as_user(teacher.user).patch(
        reverse("subject-detail", args=[subject.pk]), {"title": "Systèmes dynamiques", "enrolled": 2}, format="json"
    )

    assert response.status_code == 200
    subject.refresh_from_db()
    assert subject.title == "Systèmes dynamiques"
    assert subject.enrolled == 0


def test_patch_capacity_below_enrolled(as_user, make_subject, teacher, make_student):
    subject = make_subject(capacity=2)
    coordinator.approve(coordinator.apply(make_student().pk, subject.pk).pk)
    coordinator.approve(coordinator.apply(make_student().pk, subject.pk).pk)

    response = as_user(teacher.user).patch(reverse("subject-detail", args=[subject.pk]), {"capacity": 1}, format="json")

    assert response.status_code == 400
    assert response.data["kind"] == "ValidationError"
    assert "capacity" in response.data["message"]


def test_patch_by_other_teacher_is_forbidden(as_user, subject, make_teacher):
    response = as_user(make_teacher().user).patch(
        reverse("subject-detail", args=[subject.pk]), {"title": "x"}, format="json"
    )

    assert response.status_code == 403


def test_delete_subject_with_enrollments(as_user, subject, teacher, make_student):
    coordinator.apply(make_student().pk, subject.pk)

    response = as_user(teacher.user).delete(reverse("subject-detail", args=[subject.pk]))

    assert response.status_code == 409
    assert response.data["kind"] == "HasActiveEnrollments"


def test_delete_empty_subject(as_user, subject, teacher):
    response = as_user(teacher.user).delete(reverse("subject-detail", args=[subject.pk]))

    assert response.status_code == 204
    assert not Subject.objects.filter(pk=subject.pk).exists()


def test_subject_detail_not_found(as_user, make_student):
    response = as_user(make_student().user).get(reverse("subject-detail", args=[999]))

    assert response.status_code == 404


def test_subject_list_filters(as_user, make_subject, make_student):
    make_subject(title="Transport urbain", keywords="optimisation")
    make_subject(title="Cryptographie")

    response = as_user(make_student().user).get(reverse("subject-list"), {"search": "optimisation"})

    assert response.status_code == 200
    assert response.data["total"] == 1
    assert response.data["subjects"][0]["title"] == "Transport urbain"


def test_subject_list_total_ignores_limit(as_user, make_subject, make_student):
    for _ in range(3):
        make_subject()

    response = as_user(make_student().user).get(reverse("subject-list"), {"limit": 2})

    assert response.status_code == 200
    assert len(response.data["subjects"]) == 2
    assert response.data["total"] == 3


def test_teacher_subjects_with_status_all(as_user, make_subject, make_teacher, teacher):
    make_subject(title="Mien")
    make_subject(title="Archivé", status=Subject.Status.ARCHIVED)
    make_subject(title="Autre", owner=make_teacher())

    response = as_user(teacher.user).get(reverse("subject-mine"), {"status": "all", "sort": "title"})

    assert [s["title"] for s in response.data["subjects"]] == ["Archivé", "Mien"]


def test_available_subjects_cache_is_invalidated(as_user, make_subject, make_student):
    subject = make_subject(capacity=1, title="Cryptographie")
    client = as_user(make_student().user)

    first = client.get(reverse("subject-available"))
    assert [s["title"] for s in first.data] == ["Cryptographie"]
    assert cache.get(AVAILABLE_SUBJECTS_CACHE_KEY) is not None

    coordinator.approve(coordinator.apply(make_student().pk, subject.pk).pk)

    assert cache.get(AVAILABLE_SUBJECTS_CACHE_KEY) is None
    assert client.get(reverse("subject-available")).data == []


def test_myinfo_exposes_pfe_subject(as_user, subject, make_student):
    student = make_student()
    coordinator.approve(coordinator.apply(student.pk, subject.pk).pk)
    user = User.objects.get(pk=student.user_id)

    response = as_user(user).get(reverse("myinfo"))

    assert response.status_code == 200
    assert response.data["role"] == "student"
    assert response.data["pfe_subject"]["id"] == subject.pk
