"""
Authentication views.

Staff log in with email and password.  The response carries both a DRF
token and a JWT pair, plus the caller's capability (role, department,
landing view) so the front end can pick the right dashboard without
asking again.
"""
from __future__ import annotations

from django.contrib.auth import authenticate
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.views import TokenRefreshView

from frontdesk.exceptions import ValidationError
from frontdesk.permissions import HasRole, capability_for
from frontdesk.serializers.auth import LoginSerializer
from frontdesk.services.accounts import resolve_capability
from frontdesk.services.audit import log_action


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """Log in with ``email`` and ``password``.

    Users without a staff profile are refused even when the password is
    right, since no dashboard exists for them.
    """
    s = LoginSerializer(data=request.data)
    if not s.is_valid():
        raise ValidationError(s.errors)
    email = s.validated_data['email']
    password = s.validated_data['password']

    user = authenticate(request, username=email, password=password)
    if not user:
        log_action(user=None, action='login', object_type='user', object_id=email,
                   detail={'result': 'fail', 'ip': request.META.get('REMOTE_ADDR')})
        return Response({'ok': False, 'error': {'code': 'invalid_credentials', 'message': 'invalid email or password'}},
                        status=400)

    cap = resolve_capability(user)
    if cap is None:
        log_action(user=user, action='login', object_type='user', object_id=email,
                   detail={'result': 'no_role'})
        return Response({'ok': False, 'error': {'code': 'no_role', 'message': 'account has no staff role'}},
                        status=403)

    log_action(user=user, action='login', object_type='user', object_id=email,
               detail={'result': 'ok', 'ip': request.META.get('REMOTE_ADDR')})

    token_obj, _ = Token.objects.get_or_create(user=user)
    refresh = RefreshToken.for_user(user)
    return Response({
        'ok': True,
        'token': token_obj.key,
        'jwt_access': str(refresh.access_token),
        'jwt_refresh': str(refresh),
        'role': cap.role,
        'user': {
            'id': user.id,
            'email': user.username,
            'name': user.first_name or user.username,
        },
        'capability': cap.as_dict(),
    }, status=200)

# DRF ScopedRateThrottle uses throttle_scope on the view function
login_view.throttle_scope = 'login'


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasRole])
def me_view(request):
    return Response({'ok': True, 'capability': capability_for(request).as_dict()})


@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from refresh token."""
    view = TokenRefreshView.as_view()
    resp = view(request._request)
    data = dict(resp.data)
    if 'access' in data and 'jwt_access' not in data:
        data['jwt_access'] = data.pop('access')
    return Response(data, status=resp.status_code)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist the given refresh token, or all of the caller's, and drop the DRF token."""
    refresh = request.data.get('refresh')
    count = 0
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
            count = 1
        except TokenError as e:
            raise ValidationError({'refresh': [str(e)]})
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    Token.objects.filter(user=request.user).delete()
    log_action(user=request.user, action='logout', object_type='user', object_id=request.user.username,
               detail={'blacklisted': count})
    return Response({'ok': True, 'blacklisted': count})
