"""
Django admin registrations for the frontdesk models.

Documents are editable as raw JSON, which is handy for fixing a waiting
list or a patient record by hand during development.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import AuditEvent, Document, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('username', 'first_name', 'is_staff', 'is_superuser', 'is_active')
    search_fields = ('username', 'first_name', 'email')


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ('collection', 'key', 'version', 'updated_at')
    list_filter = ('collection',)
    search_fields = ('key',)
    readonly_fields = ('version', 'created_at', 'updated_at')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'object_type', 'object_id', 'user', 'created_at')
    list_filter = ('action', 'object_type')
    search_fields = ('object_id', 'user__username')
