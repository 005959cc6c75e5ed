import logging

from apps.audit.models import AuditLog

logger = logging.getLogger(__name__)


def record_audit(*, actor, action, entity_type, entity_id, payload=None):
    actor = actor if getattr(actor, "is_authenticated", False) else None
    entry = AuditLog.objects.create(
        actor=actor,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        payload=payload or {},
    )
    logger.debug("audit %s %s:%s by %s", action, entity_type, entity_id, getattr(actor, "username", "system"))
    return entry


def audit_trail(*, entity_type, entity_id):
    return AuditLog.objects.filter(entity_type=entity_type, entity_id=str(entity_id)).select_related("actor")
