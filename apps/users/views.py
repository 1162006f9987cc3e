from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import UserSerializer


class MyinfoView(APIView):
    """
    Profil de l'utilisateur connecté
    """

    @extend_schema(
        summary="Profil utilisateur",
        description="Retourne le profil, le rôle et, pour un étudiant, son sujet PFE approuvé.",
        responses={200: UserSerializer},
        tags=["User"],
    )
    def get(self, request):
        serializer = UserSerializer(request.user)
        return Response(serializer.data, status=status.HTTP_200_OK)
