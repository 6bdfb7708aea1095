"""Views for staff authentication (login, current session)."""

from __future__ import annotations

from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken  # type: ignore

from .permissions import IsStaffSession
from .serializers import LoginSerializer, SessionSerializer, UserSerializer
from .session import get_session, session_for_user


class LoginView(APIView):
    """Exchange back-office credentials for a JWT pair and the staff session."""

    permission_classes = [AllowAny]

    def post(self, request):  # type: ignore
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data["user"]

        session = session_for_user(user)
        if session is None:
            return Response(
                {"code": "forbidden", "detail": "This account has no back-office access."},
                status=status.HTTP_403_FORBIDDEN,
            )

        refresh = RefreshToken.for_user(user)
        refresh["role"] = user.role
        return Response(
            {
                "user": UserSerializer(user).data,
                "session": SessionSerializer(session).data,
                "tokens": {"refresh": str(refresh), "access": str(refresh.access_token)},
            },
            status=status.HTTP_200_OK,
        )


class SessionView(APIView):
    """Return the acting staff member and the zones they can reach."""

    permission_classes = [IsStaffSession]

    def get(self, request):  # type: ignore
        return Response(SessionSerializer(get_session(request)).data)
