from django.db.models import ProtectedError
from rest_framework import viewsets

from apps.audit.services import record_audit
from apps.common.exceptions import Conflict


class AuditedModelViewSet(viewsets.ModelViewSet):
    """ModelViewSet that writes an audit entry for every create, update and delete."""

    audit_entity = None
    audit_exclude = ()

    def _snapshot(self, instance):
        data = self.get_serializer(instance).data
        return {key: str(value) for key, value in data.items() if key not in self.audit_exclude}

    def perform_create(self, serializer):
        instance = serializer.save()
        record_audit(
            actor=self.request.user,
            action=f"{self.audit_entity}.create",
            entity_type=self.audit_entity,
            entity_id=instance.id,
            payload=self._snapshot(instance),
        )

    def perform_update(self, serializer):
        before = self._snapshot(serializer.instance)
        instance = serializer.save()
        record_audit(
            actor=self.request.user,
            action=f"{self.audit_entity}.update",
            entity_type=self.audit_entity,
            entity_id=instance.id,
            payload={"before": before, "after": self._snapshot(instance)},
        )

    def perform_destroy(self, instance):
        snapshot = self._snapshot(instance)
        entity_id = instance.id
        try:
            super().perform_destroy(instance)
        except ProtectedError:
            raise Conflict(f"{self.audit_entity} is referenced by recorded washes and cannot be deleted.")
        record_audit(
            actor=self.request.user,
            action=f"{self.audit_entity}.delete",
            entity_type=self.audit_entity,
            entity_id=entity_id,
            payload=snapshot,
        )
