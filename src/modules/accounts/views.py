from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView


class MeView(APIView):
    """Return the authenticated caller's identity and marketplace role."""

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        user = request.user
        return Response(
            {
                "success": True,
                "user": {
                    "id": str(user.pk),
                    "username": user.username,
                    "email": user.email,
                    "role": user.role,
                },
            }
        )
