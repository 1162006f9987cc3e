"""
Fixtures partagées: utilisateurs, profils, sujets et client API.
"""
import itertools

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from apps.subjects.models import Subject
from apps.users.models import User

_counter = itertools.count(1)


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_teacher(db):
    def _make_teacher(name=None):
        n = next(_counter)
        user = User.objects.create_teacher(
            f"prof{n}@fst.una.mr", "prof123", name=name or f"Enseignant {n}", specialization="Analyse"
        )
        return user.teacher

    return _make_teacher


@pytest.fixture
def make_student(db):
    def _make_student(name=None):
        n = next(_counter)
        user = User.objects.create_student(
            f"etu{n}@etudiant.una.mr", "etu123", matricule=f"MAT{n:05d}", year="Master 1", name=name or f"Étudiant {n}"
        )
        return user.student

    return _make_student


@pytest.fixture
def teacher(make_teacher):
    return make_teacher("Dr. Mohamed Ould Ahmed")


@pytest.fixture
def make_subject(teacher):
    def _make_subject(capacity=2, owner=None, **fields):
        n = next(_counter)
        fields.setdefault("title", f"Sujet {n}")
        fields.setdefault("description", f"Description du sujet {n}")
        return Subject.objects.create_subject(owner or teacher, capacity=capacity, **fields)

    return _make_subject


@pytest.fixture
def subject(make_subject):
    return make_subject(capacity=2, title="Analyse des systèmes dynamiques non linéaires")


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def as_user(api_client):
    """Client API authentifié en tant que `user`."""

    def _as_user(user):
        api_client.force_authenticate(user=user)
        return api_client

    return _as_user
