"""
Staff account administration (admin only).

Accounts are addressed by email, which is passed as the ``email`` query
parameter (or body field) rather than in the path.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from frontdesk.exceptions import ValidationError
from frontdesk.permissions import CanManageAccounts
from frontdesk.services import accounts


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanManageAccounts])
def account_list(request):
    """``GET`` lists every staff profile; ``POST`` creates an account."""
    if request.method == 'GET':
        return Response({'ok': True, 'results': accounts.list_accounts()})
    profile = accounts.create_account(request.data, user=request.user)
    return Response({'ok': True, 'account': profile}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'POST', 'DELETE'])
@permission_classes([IsAuthenticated, CanManageAccounts])
def account_detail(request):
    email = request.query_params.get('email') or request.data.get('email')
    if not email:
        raise ValidationError({'email': ['email is required']})
    if request.method == 'GET':
        return Response({'ok': True, 'account': accounts.get_account(email)})
    if request.method == 'DELETE':
        accounts.delete_account(email, user=request.user)
        return Response({'ok': True})
    fields = {k: v for k, v in request.data.items() if k != 'email'}
    profile = accounts.update_account(email, fields, user=request.user)
    return Response({'ok': True, 'account': profile})
