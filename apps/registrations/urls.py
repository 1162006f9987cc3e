from django.urls import path

from .views import (
    EnrollmentApplyView,
    EnrollmentApproveView,
    EnrollmentRejectView,
    MyEnrollmentListView,
    SubjectEnrollmentListView,
    SupervisedStudentListView,
    TeacherApplicationListView,
)

urlpatterns = [
    # candidature (étudiant)
    path("", EnrollmentApplyView.as_view(), name="enrollment-apply"),
    path("me/", MyEnrollmentListView.as_view(), name="enrollment-me"),
    # gestion des candidatures (enseignant)
    path("applications/", TeacherApplicationListView.as_view(), name="enrollment-applications"),
    path("students/", SupervisedStudentListView.as_view(), name="enrollment-students"),
    path("subject/<int:subject_id>/", SubjectEnrollmentListView.as_view(), name="enrollment-by-subject"),
    path("<int:enrollment_id>/approve/", EnrollmentApproveView.as_view(), name="enrollment-approve"),
    path("<int:enrollment_id>/reject/", EnrollmentRejectView.as_view(), name="enrollment-reject"),
]
