"""
Database models for the clinic front desk.

Clinic data (patients, staff profiles, waiting lists) is kept as JSON
documents grouped into collections; :class:`Document` is the single table
backing :mod:`frontdesk.services.store`.  Django's own user model is the
identity provider: it owns the login credentials, while the staff profile
and role live in the ``users`` collection keyed by the same email.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Login identity for a staff member.

    ``username`` is always the lower-cased email address, which is also the
    key of the matching document in the ``users`` collection.
    """

    def __str__(self) -> str:
        return self.username


class Document(models.Model):
    """A JSON document stored under ``(collection, key)``.

    ``version`` is bumped on every write so that callers without row locks
    can perform compare-and-set updates.
    """
    collection = models.CharField(max_length=64)
    key = models.CharField(max_length=255)
    data = models.JSONField(default=dict, blank=True)
    version = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['collection', 'key'], name='uniq_document_collection_key'),
        ]

    def __str__(self) -> str:
        return f"{self.collection}/{self.key} (v{self.version})"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.CharField(max_length=255, blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.object_type}/{self.object_id}@{self.created_at:%F %T}"
