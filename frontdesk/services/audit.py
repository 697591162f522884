import logging
from typing import Optional, Any, Dict
from django.contrib.auth import get_user_model
from django.db import DatabaseError
from frontdesk.exceptions import StoreUnavailable
from frontdesk.models import AuditEvent

User = get_user_model()
logger = logging.getLogger(__name__)

def log_action(*, user: Optional[User], action: str, object_type: Optional[str]=None, object_id: Optional[Any]=None, detail: Optional[Dict[str, Any]]=None) -> AuditEvent:
    """Record an audit event.

    Callers run this inside the same ``transaction.atomic()`` as the write it
    describes, so a failed insert rolls that write back as well.
    """
    logger.info('%s %s/%s by %s', action, object_type, object_id, getattr(user, 'username', None) or '-')
    try:
        return AuditEvent.objects.create(
            user=user if getattr(user, 'pk', None) else None,
            action=action,
            object_type=object_type,
            object_id=str(object_id) if object_id is not None else None,
            detail=detail or {},
        )
    except DatabaseError as exc:
        logger.error('audit %s on %s/%s failed: %s', action, object_type, object_id, exc)
        raise StoreUnavailable() from exc
