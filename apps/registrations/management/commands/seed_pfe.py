"""
Données de démonstration du portail PFE (idempotent).

Les candidatures passent par EnrollmentCoordinator, comme en production,
pour que compteurs et statuts restent cohérents.
"""
import logging
from datetime import date

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.common.exceptions import DomainError
from apps.registrations.models import Enrollment
from apps.registrations.services import coordinator
from apps.subjects.models import Subject
from apps.users.models import User

logger = logging.getLogger(__name__)

TEACHERS = [
    {
        "email": "mohamed.ouldahmed@fst.una.mr",
        "name": "Dr. Mohamed Ould Ahmed",
        "specialization": "Analyse Mathématique",
    },
    {
        "email": "aicha.mintmohamed@fst.una.mr",
        "name": "Dr. Aicha Mint Mohamed",
        "specialization": "Recherche Opérationnelle",
    },
    {
        "email": "sidi.ouldcheikh@fst.una.mr",
        "name": "Dr. Sidi Ould Cheikh",
        "specialization": "Informatique Théorique",
    },
]

STUDENTS = [
    {"email": "ahmed.salem@etudiant.una.mr", "name": "Ahmed Salem", "matricule": "MAT2025001"},
    {"email": "fatimata.mintali@etudiant.una.mr", "name": "Fatimata Mint Ali", "matricule": "MAT2025002"},
    {"email": "moussa.demba@etudiant.una.mr", "name": "Moussa Demba", "matricule": "MAT2025003"},
]

SUBJECTS = [
    {
        "teacher": "mohamed.ouldahmed@fst.una.mr",
        "title": "Analyse des systèmes dynamiques non linéaires",
        "description": (
            "Étude des comportements chaotiques dans les systèmes différentiels avec applications "
            "aux modèles économiques et écologiques en contexte mauritanien."
        ),
        "specialization": "Analyse Mathématique",
        "capacity": 2,
        "requirements": "Analyse réelle, équations différentielles, Python (numpy, matplotlib)",
        "keywords": "dynamique, chaos, modélisation, Mauritanie",
        "deadline": date(2025, 3, 15),
    },
    {
        "teacher": "aicha.mintmohamed@fst.una.mr",
        "title": "Optimisation de réseaux de transport urbain à Nouakchott",
        "description": (
            "Application des algorithmes d'optimisation et de la recherche opérationnelle aux "
            "problèmes de transport public dans la capitale mauritanienne."
        ),
        "specialization": "Recherche Opérationnelle",
        "capacity": 3,
        "requirements": "Programmation linéaire, théorie des graphes, Python/Julia",
        "keywords": "optimisation, transport, Nouakchott, logistique",
        "deadline": date(2025, 3, 20),
    },
    {
        "teacher": "sidi.ouldcheikh@fst.una.mr",
        "title": "Implémentation d'algorithmes cryptographiques pour la sécurisation des données administratives",
        "description": (
            "Développement et analyse d'algorithmes de cryptographie moderne (RSA, AES, ECC) "
            "appliqués à la protection des données des administrations."
        ),
        "specialization": "Informatique Théorique",
        "capacity": 2,
        "requirements": "Mathématiques discrètes, théorie des nombres, C/C++/Python",
        "keywords": "cryptographie, sécurité, algorithmes, administration",
        "deadline": date(2025, 3, 10),
    },
    {
        "teacher": "mohamed.ouldahmed@fst.una.mr",
        "title": "Modélisation mathématique de l'érosion côtière en Mauritanie",
        "description": (
            "Modèles mathématiques pour prédire l'érosion des côtes mauritaniennes sous l'effet "
            "du changement climatique."
        ),
        "specialization": "Mathématiques Appliquées",
        "capacity": 2,
        "requirements": "EDP, analyse numérique, MATLAB/Python",
        "keywords": "modélisation, érosion, environnement, climat",
        "deadline": date(2025, 3, 25),
    },
]

# (étudiant, sujet, motivation, approuver)
ENROLLMENTS = [
    (
        "ahmed.salem@etudiant.una.mr",
        "Analyse des systèmes dynamiques non linéaires",
        "Passionné par les systèmes dynamiques et leurs applications écologiques.",
        True,
    ),
    (
        "fatimata.mintali@etudiant.una.mr",
        "Optimisation de réseaux de transport urbain à Nouakchott",
        "Intéressée par les problèmes de transport à Nouakchott.",
        False,
    ),
    (
        "moussa.demba@etudiant.una.mr",
        "Implémentation d'algorithmes cryptographiques pour la sécurisation des données administratives",
        "Souhaite contribuer à la sécurité informatique en Mauritanie.",
        False,
    ),
]


class Command(BaseCommand):
    help = "Crée les enseignants, étudiants, sujets et candidatures de démonstration"

    def add_arguments(self, parser):
        parser.add_argument("--password", default="pfe2025", help="mot de passe des comptes créés")

    @transaction.atomic
    def handle(self, *args, **options):
        password = options["password"]

        teachers = {}
        for data in TEACHERS:
            user = User.objects.filter(email=data["email"]).first()
            if user is None:
                user = User.objects.create_teacher(
                    data["email"], password, name=data["name"], specialization=data["specialization"]
                )
                self.stdout.write(f"enseignant créé: {user.name}")
            teachers[data["email"]] = user.teacher

        students = {}
        for data in STUDENTS:
            user = User.objects.filter(email=data["email"]).first()
            if user is None:
                user = User.objects.create_student(
                    data["email"], password, matricule=data["matricule"], year="Master 1", name=data["name"]
                )
                self.stdout.write(f"étudiant créé: {user.name}")
            students[data["email"]] = user.student

        subjects = {}
        for data in SUBJECTS:
            fields = {key: value for key, value in data.items() if key != "teacher"}
            subject = Subject.objects.filter(title=data["title"]).first()
            if subject is None:
                subject = Subject.objects.create_subject(teachers[data["teacher"]], **fields)
                self.stdout.write(f"sujet créé: {subject.title[:50]}")
            subjects[data["title"]] = subject

        for email, title, motivation, approve in ENROLLMENTS:
            student, subject = students[email], subjects[title]
            enrollment = Enrollment.objects.filter(student=student, subject=subject).first()
            try:
                if enrollment is None:
                    enrollment = coordinator.apply(student.pk, subject.pk, motivation)
                if approve and enrollment.status == Enrollment.Status.PENDING:
                    coordinator.approve(enrollment.pk, "Candidature retenue")
            except DomainError as exc:
                logger.warning("Candidature de démonstration ignorée (%s): %s -> %s", exc.kind, email, title)

        self.stdout.write(self.style.SUCCESS("Données PFE initialisées."))
