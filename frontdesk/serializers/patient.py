from django.conf import settings
from django.core.validators import RegexValidator
from rest_framework import serializers

from frontdesk.services.text import clean_text


class PatientRegistrationSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=128)
    age = serializers.IntegerField(min_value=1, max_value=150)
    gender = serializers.CharField(max_length=16)
    address = serializers.CharField(required=False, allow_blank=True, max_length=512, default='')
    mobile = serializers.CharField(
        validators=[RegexValidator(r'^\d{10}$', 'mobile number must be exactly 10 digits')],
    )
    treatments = serializers.ListField(child=serializers.CharField(max_length=32), allow_empty=False)

    def validate_name(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('name is required')
        return v

    def validate_gender(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('gender is required')
        return v

    def validate_address(self, v):
        return clean_text(v)

    def validate_treatments(self, v):
        seen: list[str] = []
        unknown: list[str] = []
        for item in v:
            dept = (item or '').strip().lower()
            if dept not in settings.CLINIC_DEPARTMENTS:
                unknown.append(item)
            elif dept not in seen:
                seen.append(dept)
        if unknown:
            raise serializers.ValidationError(f"unknown departments: {', '.join(unknown)}")
        return seen


class PatientListQuerySerializer(serializers.Serializer):
    after = serializers.CharField(required=False, allow_blank=True)
    pageSize = serializers.IntegerField(required=False, min_value=1, max_value=200)


class AnnotationSerializer(serializers.Serializer):
    dept = serializers.CharField(max_length=32)
    prescription = serializers.CharField(required=False, allow_blank=True, max_length=4000, default='')
    remark = serializers.CharField(required=False, allow_blank=True, max_length=4000, default='')
