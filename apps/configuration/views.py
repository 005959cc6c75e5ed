from rest_framework import generics

from apps.audit.services import record_audit
from apps.common.permissions import RolePermission
from apps.configuration.models import AppSettings
from apps.configuration.serializers import AppSettingsSerializer


class AppSettingsView(generics.RetrieveUpdateAPIView):
    serializer_class = AppSettingsSerializer
    permission_classes = [RolePermission]
    capability_map = {
        "get": ["settings.view"],
        "put": ["settings.manage"],
        "patch": ["settings.manage"],
    }

    def get_object(self):
        return AppSettings.get_solo()

    def perform_update(self, serializer):
        before = AppSettingsSerializer(serializer.instance).data
        instance = serializer.save()
        after = AppSettingsSerializer(instance).data
        changed = {key: {"before": str(before[key]), "after": str(after[key])} for key in after if before.get(key) != after[key]}
        changed.pop("updated_at", None)
        record_audit(
            actor=self.request.user,
            action="settings.update",
            entity_type="app_settings",
            entity_id=instance.pk,
            payload=changed,
        )
