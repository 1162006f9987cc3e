import pytest
from django.core.management import call_command

from apps.registrations.models import Enrollment
from apps.subjects.models import Subject
from apps.users.models import Student, Teacher

pytestmark = pytest.mark.django_db


def test_seed_creates_consistent_demo_data():
    call_command("seed_pfe")

    assert Teacher.objects.count() == 3
    assert Student.objects.count() == 3
    assert Subject.objects.count() == 4
    assert Enrollment.objects.count_by_status() == {"approved": 1, "pending": 2}

    approved = Enrollment.objects.get(status=Enrollment.Status.APPROVED)
    assert approved.subject.enrolled == 1
    assert approved.student.pfe_subject == approved.subject
    assert approved.student.user.email == "ahmed.salem@etudiant.una.mr"


def test_seed_is_idempotent():
    call_command("seed_pfe")
    call_command("seed_pfe")

    assert Subject.objects.count() == 4
    assert Enrollment.objects.count() == 3
    assert Subject.objects.get(title__startswith="Analyse des systèmes").enrolled == 1
