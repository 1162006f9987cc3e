from django.urls import path

from apps.subjects import views

urlpatterns = [
    path("", views.SubjectListView.as_view(), name="subject-list"),
    path("available/", views.AvailableSubjectListView.as_view(), name="subject-available"),
    path("mine/", views.TeacherSubjectListView.as_view(), name="subject-mine"),
    path("<int:subject_id>/", views.SubjectDetailView.as_view(), name="subject-detail"),
]
