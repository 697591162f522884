from django.conf import settings
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import RegexValidator
from rest_framework import serializers

from frontdesk.roles import ROLES, ROLES_WITH_DEPT
from frontdesk.services.text import clean_text

_mobile = RegexValidator(r'^\d{10}$', 'mobile number must be exactly 10 digits')


class AccountFieldsMixin:
    def validate_name(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('name is required')
        return v

    def validate_address(self, v):
        return clean_text(v)

    def validate_dept(self, v):
        v = (v or '').strip().lower()
        if v and v not in settings.CLINIC_DEPARTMENTS:
            raise serializers.ValidationError(f'unknown department: {v}')
        return v


class AccountCreateSerializer(AccountFieldsMixin, serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)
    role = serializers.ChoiceField(choices=ROLES)
    name = serializers.CharField(max_length=128)
    dept = serializers.CharField(required=False, allow_blank=True, default='')
    mobileNo = serializers.CharField(validators=[_mobile])
    age = serializers.IntegerField(min_value=1, max_value=150)
    address = serializers.CharField(max_length=512)

    def validate_email(self, v):
        return v.strip().lower()

    def validate_password(self, v):
        try:
            validate_password(v)
        except DjangoValidationError as e:
            raise serializers.ValidationError(e.messages)
        return v

    def validate(self, attrs):
        if attrs['role'] in ROLES_WITH_DEPT:
            if not attrs.get('dept'):
                raise serializers.ValidationError({'dept': ['department is required for this role']})
        else:
            attrs['dept'] = ''
        return attrs


class AccountUpdateSerializer(AccountFieldsMixin, serializers.Serializer):
    role = serializers.ChoiceField(choices=ROLES, required=False)
    name = serializers.CharField(max_length=128, required=False)
    dept = serializers.CharField(required=False, allow_blank=True)
    mobileNo = serializers.CharField(validators=[_mobile], required=False)
    age = serializers.IntegerField(min_value=1, max_value=150, required=False)
    address = serializers.CharField(max_length=512, required=False, allow_blank=True)
