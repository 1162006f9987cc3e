from django.urls import path

from .views import (
    DeliverableDetailView,
    DeliverableReviewView,
    DeliverableTypeListView,
    DeliverableUploadView,
    MyDeliverableListView,
    SubjectDeliverableListView,
)

urlpatterns = [
    path("types/", DeliverableTypeListView.as_view(), name="deliverable-types"),
    # dépôt (étudiant)
    path("", DeliverableUploadView.as_view(), name="deliverable-upload"),
    path("me/", MyDeliverableListView.as_view(), name="deliverable-me"),
    path("<int:deliverable_id>/", DeliverableDetailView.as_view(), name="deliverable-detail"),
    # suivi (enseignant)
    path("subject/<int:subject_id>/", SubjectDeliverableListView.as_view(), name="deliverable-by-subject"),
    path("<int:deliverable_id>/review/", DeliverableReviewView.as_view(), name="deliverable-review"),
]
