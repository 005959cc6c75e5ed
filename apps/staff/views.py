from django.db.models import Q

from apps.common.permissions import RolePermission
from apps.common.viewsets import AuditedModelViewSet
from apps.staff.models import Staff
from apps.staff.serializers import StaffSerializer


class StaffViewSet(AuditedModelViewSet):
    queryset = Staff.objects.all()
    serializer_class = StaffSerializer
    permission_classes = [RolePermission]
    audit_entity = "staff"
    capability_map = {
        "list": ["staff.view"],
        "retrieve": ["staff.view"],
        "create": ["staff.manage"],
        "update": ["staff.manage"],
        "partial_update": ["staff.manage"],
        "destroy": ["staff.manage"],
    }

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params
        if str(params.get("active")).lower() in {"1", "true", "yes"}:
            queryset = queryset.filter(is_active=True)
        q = params.get("q", "").strip()
        if q:
            queryset = queryset.filter(Q(name__icontains=q) | Q(phone__icontains=q))
        return queryset

    def perform_destroy(self, instance):
        # Washes keep pointing at former staff, so deleting only deactivates.
        serializer = self.get_serializer(instance, data={"is_active": False}, partial=True)
        serializer.is_valid(raise_exception=True)
        self.perform_update(serializer)
