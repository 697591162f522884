"""
Patient endpoints.

Ushers and administrators register patients; every staff role can look a
patient up by coupon number.  Prescriptions and remarks are only returned
to roles allowed to see them, and only doctors may write them.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from frontdesk import roles
from frontdesk.exceptions import ValidationError
from frontdesk.permissions import CanAnnotate, CanRegisterPatients, CanViewPatients, capability_for
from frontdesk.serializers.patient import AnnotationSerializer, PatientListQuerySerializer
from frontdesk.services import annotations, patients, sequence


def _for_caller(request, record: dict) -> dict:
    """Strip fields the caller's role is not permitted to see."""
    cap = capability_for(request)
    if cap and cap.allows(roles.VIEW_PRESCRIPTIONS):
        return record
    return {k: v for k, v in record.items() if k not in ('prescriptions', 'remarks')}


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanRegisterPatients])
def register_patient(request):
    """Register a patient and return the record with its coupon number.

    Body: ``name``, ``age``, ``gender``, ``address``, ``mobile`` and
    ``treatments`` (list of department ids).
    """
    # Form posts repeat ``treatments``; JSON sends a list.
    if hasattr(request.data, 'getlist'):
        data = request.data.dict()
        treatments = request.data.getlist('treatments')
    else:
        data = dict(request.data)
        treatments = data.get('treatments')
    data.pop('treatments', None)
    record = sequence.register_patient(data, treatments, user=request.user)
    return Response({'ok': True, 'patient': record}, status=status.HTTP_201_CREATED)

register_patient.throttle_scope = 'patient_write'


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanRegisterPatients])
def next_coupon(request):
    """Preview the number the next registration will most likely receive."""
    return Response({'ok': True, 'couponNumber': sequence.allocate_next()})


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewPatients])
def list_patients(request):
    q = PatientListQuerySerializer(data=request.query_params)
    if not q.is_valid():
        raise ValidationError(q.errors)
    page = patients.list_patients(after=q.validated_data.get('after'), limit=q.validated_data.get('pageSize'))
    return Response({
        'ok': True,
        'results': [_for_caller(request, r) for r in page['results']],
        'next': page['next'],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanViewPatients])
def patient_detail(request, coupon):
    record = patients.get_patient(coupon)
    return Response({'ok': True, 'patient': _for_caller(request, record)})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanAnnotate])
def patient_annotations(request, coupon):
    """``GET`` lists the departments a doctor may annotate; ``POST`` saves one.

    ``POST`` body: ``dept``, ``prescription``, ``remark``.
    """
    if request.method == 'GET':
        record = patients.get_patient(coupon)
        return Response({
            'ok': True,
            'departments': annotations.permitted_departments(coupon),
            'prescriptions': record.get('prescriptions') or {},
            'remarks': record.get('remarks') or {},
        })
    s = AnnotationSerializer(data=request.data)
    if not s.is_valid():
        raise ValidationError(s.errors)
    vd = s.validated_data
    record = annotations.update_annotation(coupon, vd['dept'], vd['prescription'], vd['remark'], user=request.user)
    return Response({'ok': True, 'patient': record})
