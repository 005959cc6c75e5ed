from rest_framework import status
from rest_framework.decorators import action
from rest_framework.generics import get_object_or_404
from rest_framework.response import Response

from apps.audit.services import record_audit
from apps.catalog.models import CarType, Service, ServicePrice
from apps.catalog.serializers import (
    CarTypeSerializer,
    PriceUpsertSerializer,
    ServicePriceSerializer,
    ServiceSerializer,
)
from apps.common.permissions import RolePermission
from apps.common.viewsets import AuditedModelViewSet


class CarTypeViewSet(AuditedModelViewSet):
    queryset = CarType.objects.all()
    serializer_class = CarTypeSerializer
    permission_classes = [RolePermission]
    audit_entity = "car_type"
    capability_map = {
        "list": ["catalog.view"],
        "retrieve": ["catalog.view"],
        "create": ["catalog.manage"],
        "update": ["catalog.manage"],
        "partial_update": ["catalog.manage"],
        "destroy": ["catalog.manage"],
    }


class ServiceViewSet(AuditedModelViewSet):
    queryset = Service.objects.prefetch_related("prices__car_type")
    serializer_class = ServiceSerializer
    permission_classes = [RolePermission]
    audit_entity = "service"
    audit_exclude = ("prices",)
    capability_map = {
        "list": ["catalog.view"],
        "retrieve": ["catalog.view"],
        "create": ["catalog.manage"],
        "update": ["catalog.manage"],
        "partial_update": ["catalog.manage"],
        "destroy": ["catalog.manage"],
        "set_price": ["catalog.manage"],
    }

    def get_queryset(self):
        queryset = super().get_queryset()
        active = self.request.query_params.get("active")
        if str(active).lower() in {"1", "true", "yes"}:
            queryset = queryset.filter(is_active=True)
        return queryset

    @action(detail=True, methods=["put"], url_path=r"prices/(?P<car_type_id>[^/.]+)")
    def set_price(self, request, pk=None, car_type_id=None):
        service = self.get_object()
        car_type = get_object_or_404(CarType, pk=car_type_id)
        serializer = PriceUpsertSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        row, created = ServicePrice.objects.update_or_create(
            service=service,
            car_type=car_type,
            defaults={"price": serializer.validated_data["price"]},
        )
        record_audit(
            actor=request.user,
            action="service.price",
            entity_type="service",
            entity_id=service.id,
            payload={"car_type": str(car_type.id), "price": str(row.price)},
        )
        return Response(
            ServicePriceSerializer(row).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )
