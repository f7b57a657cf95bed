# apps/customers/views.py
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView
import logging

from apps.ledger.exceptions import PersistenceFailure
from apps.ledger.services import commit_mutation
from apps.ledger.store import get_ledger
from apps.users.permissions import IsOwner
from .directory import merge_customer

logger = logging.getLogger(__name__)


class CustomerDirectoryView(APIView):
    permission_classes = [IsOwner]

    def get(self, request):
        return Response(get_ledger().collection('customers'))

    def post(self, request):
        fragment = dict(request.data.items()) if hasattr(request.data, 'items') else {}
        if not (fragment.get('aadhar') or fragment.get('aadharNumber')):
            return Response(
                {"error": "Identity number (aadhar) is required"},
                status=status.HTTP_400_BAD_REQUEST
            )

        def mutation(document):
            return merge_customer(document, fragment), ['customers']

        try:
            customer = commit_mutation(mutation)
        except PersistenceFailure as e:
            logger.error(f"Customer upsert not persisted: {e}")
            return Response(
                {"error": "Customer could not be saved", "detail": str(e)},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        return Response({"ok": True, "customer": customer}, status=status.HTTP_200_OK)
