from django.utils import timezone
from rest_framework import mixins, status, viewsets
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from apps.audit.services import record_audit
from apps.common.periods import month_start, parse_month
from apps.common.permissions import RolePermission
from apps.promotions.models import FeaturedVehicle, Promotion
from apps.promotions.serializers import FeaturedVehicleSerializer, FeatureVehicleInputSerializer, PromotionSerializer
from apps.promotions.services import feature_vehicle


class PromotionViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, mixins.UpdateModelMixin, viewsets.GenericViewSet):
    queryset = Promotion.objects.all()
    serializer_class = PromotionSerializer
    permission_classes = [RolePermission]
    pagination_class = None
    capability_map = {
        "list": ["promotions.view"],
        "retrieve": ["promotions.view"],
        "update": ["promotions.manage"],
        "partial_update": ["promotions.manage"],
    }

    def perform_update(self, serializer):
        was_active = serializer.instance.is_active
        promotion = serializer.save()
        record_audit(
            actor=self.request.user,
            action="promotion.update",
            entity_type="promotion",
            entity_id=promotion.id,
            payload={"code": promotion.code, "is_active": {"before": was_active, "after": promotion.is_active}},
        )


class FeaturedVehicleViewSet(mixins.ListModelMixin, mixins.CreateModelMixin, mixins.DestroyModelMixin, viewsets.GenericViewSet):
    queryset = FeaturedVehicle.objects.select_related("featured_by")
    serializer_class = FeaturedVehicleSerializer
    permission_classes = [RolePermission]
    pagination_class = None
    capability_map = {
        "list": ["promotions.view"],
        "create": ["featured.manage"],
        "destroy": ["featured.manage"],
    }

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action != "list":
            return queryset
        raw_month = self.request.query_params.get("month")
        month = parse_month(raw_month) if raw_month else month_start(timezone.now())
        if month is None:
            raise ValidationError({"month": "month must be formatted as YYYY-MM"})
        return queryset.filter(month=month)

    def create(self, request, *args, **kwargs):
        serializer = FeatureVehicleInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        month = serializer.validated_data.get("month") or month_start(timezone.now())
        entry, created = feature_vehicle(
            vehicle_reg=serializer.validated_data["vehicle_reg"],
            month=month,
            operator=request.user,
        )
        if created:
            record_audit(
                actor=request.user,
                action="featured_vehicle.create",
                entity_type="featured_vehicle",
                entity_id=entry.id,
                payload={"vehicle_reg": entry.vehicle_reg, "month": entry.month.isoformat()},
            )
        return Response(
            FeaturedVehicleSerializer(entry).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    def perform_destroy(self, instance):
        record_audit(
            actor=self.request.user,
            action="featured_vehicle.delete",
            entity_type="featured_vehicle",
            entity_id=instance.id,
            payload={"vehicle_reg": instance.vehicle_reg, "month": instance.month.isoformat()},
        )
        instance.delete()
