from django.contrib.auth.base_user import BaseUserManager
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models
from django_softdelete.models import SoftDeleteManager, SoftDeleteModel

from apps.common.models import BaseModel


class UserManager(BaseUserManager, SoftDeleteManager):
    def create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError("L'adresse email est obligatoire.")
        if not password:
            raise ValueError("Le mot de passe est obligatoire.")
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        return self.create_user(email, password, **extra_fields)

    def create_student(self, email, password, matricule=None, year="", **extra_fields):
        user = self.create_user(email, password, **extra_fields)
        Student.objects.create(user=user, matricule=matricule, year=year)
        return user

    def create_teacher(self, email, password, specialization="", **extra_fields):
        user = self.create_user(email, password, **extra_fields)
        Teacher.objects.create(user=user, specialization=specialization)
        return user


class User(BaseModel, AbstractBaseUser, PermissionsMixin, SoftDeleteModel):
    email = models.EmailField(unique=True)
    name = models.CharField(max_length=100)
    department = models.CharField(max_length=100, default="Mathématiques")
    phone_number = models.CharField(max_length=20, null=True, blank=True)
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    is_superuser = models.BooleanField(default=False)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["name"]

    objects = UserManager()

    @property
    def role(self):
        if self.is_staff:
            return "admin"
        if hasattr(self, "teacher"):
            return "teacher"
        if hasattr(self, "student"):
            return "student"
        return None

    def __str__(self):
        return self.name or self.email

    class Meta:
        db_table = "user"


class Student(BaseModel):
    user = models.OneToOneField(User, on_delete=models.CASCADE)
    matricule = models.CharField(max_length=20, unique=True, null=True, blank=True)
    year = models.CharField(max_length=30, blank=True)  # ex. "Master 1"
    # sujet approuvé, maintenu par EnrollmentCoordinator.approve
    pfe_subject = models.ForeignKey(
        "subjects.Subject", on_delete=models.SET_NULL, null=True, blank=True, related_name="assigned_students"
    )

    class Meta:
        db_table = "student"

    def __str__(self):
        return f"{self.user.name}"


class Teacher(BaseModel):
    user = models.OneToOneField(User, on_delete=models.CASCADE)
    specialization = models.CharField(max_length=100, blank=True)

    class Meta:
        db_table = "teacher"

    def __str__(self):
        return f"{self.user.name}"
