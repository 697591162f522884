"""
Department endpoints.

Departments are a fixed set configured at deploy time; this endpoint
exposes them together with the size of each waiting list so front ends can
render the usher's department picker.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from frontdesk.permissions import HasRole
from frontdesk.services import queues
from frontdesk.services.departments import known_departments


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasRole])
def departments(request):
    data: list[dict[str, object]] = []
    for dept in known_departments():
        snap = queues.snapshot(dept)
        data.append({
            'id': dept,
            'waitingCount': len(snap['list']),
            'missingCount': len(snap['missing']),
        })
    return Response({'ok': True, 'results': data})
