from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.views import TokenObtainPairView
import logging

from .serializers import CustomTokenObtainPairSerializer

logger = logging.getLogger(__name__)


class CustomTokenObtainPairView(TokenObtainPairView):
    """Exchange an email/password pair for a bearer token plus the role tag"""
    serializer_class = CustomTokenObtainPairSerializer
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        response = super().post(request, *args, **kwargs)
        logger.info(f"Token issued for {response.data.get('email')} (role: {response.data.get('role')})")
        return response


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def verify_token(request):
    """Confirm the presented credential is still valid and echo its role"""
    return Response({
        'valid': True,
        'email': request.user.email,
        'role': request.user.role,
    })


class LogoutView(APIView):
    """Handle user logout by blacklisting refresh token"""
    permission_classes = [AllowAny]

    def post(self, request):
        refresh_token = request.data.get("refresh")
        if not refresh_token:
            return Response(
                {"error": "Refresh token required."},
                status=status.HTTP_400_BAD_REQUEST
            )
        try:
            RefreshToken(refresh_token).blacklist()
        except TokenError:
            return Response(
                {"error": "Invalid token or already logged out"},
                status=status.HTTP_400_BAD_REQUEST
            )
        return Response({"message": "Logout successful"}, status=status.HTTP_200_OK)
