"""
Department waiting list endpoints.

Ushers and administrators move coupon numbers between a department's
queue and its missing list.  Listing endpoints resolve each coupon to the
patient's name, age, gender and address for display; any staff role may
read them.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from frontdesk.exceptions import ValidationError
from frontdesk.permissions import CanManageQueue, HasRole
from frontdesk.serializers.queue import QueueActionSerializer
from frontdesk.services import queues


def _coupon_from(request) -> int:
    s = QueueActionSerializer(data=request.data)
    if not s.is_valid():
        raise ValidationError(s.errors)
    return s.validated_data['couponNumber']


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasRole])
def queue_list(request, dept):
    """Patients currently waiting in ``dept``, in arrival order."""
    snap = queues.snapshot(dept)
    return Response({
        'ok': True,
        'department': snap['department'],
        'patients': queues.resolve(snap['department'], snap['list']),
        'missingCount': len(snap['missing']),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasRole])
def missing_list(request, dept):
    snap = queues.snapshot(dept)
    return Response({
        'ok': True,
        'department': snap['department'],
        'patients': queues.resolve(snap['department'], snap['missing']),
        'waitingCount': len(snap['list']),
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageQueue])
def queue_add(request, dept):
    state = queues.add_to_queue(dept, _coupon_from(request), user=request.user)
    return Response({'ok': True, **state})


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageQueue])
def queue_send_to_missing(request, dept):
    state = queues.send_to_missing(dept, _coupon_from(request), user=request.user)
    return Response({'ok': True, **state})


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageQueue])
def queue_remove(request, dept):
    state = queues.remove_from_queue(dept, _coupon_from(request), user=request.user)
    return Response({'ok': True, **state})


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageQueue])
def missing_remove(request, dept):
    state = queues.remove_from_missing(dept, _coupon_from(request), user=request.user)
    return Response({'ok': True, **state})


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageQueue])
def missing_requeue(request, dept):
    """Move a missing patient back to the end of the queue (when enabled)."""
    state = queues.requeue_from_missing(dept, _coupon_from(request), user=request.user)
    return Response({'ok': True, **state})
