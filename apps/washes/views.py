from datetime import date

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from apps.common.periods import start_of_day
from apps.common.permissions import RolePermission
from apps.configuration.models import AppSettings
from apps.washes.models import Wash
from apps.washes.serializers import WashCreateSerializer, WashSerializer, WashUpdateSerializer
from apps.washes.services import create_wash, delete_wash, update_wash


def parse_day(value, field):
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise ValidationError({field: "Expected a date formatted as YYYY-MM-DD."})


class WashViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    queryset = Wash.objects.select_related("service", "car_type", "staff", "customer", "created_by")
    serializer_class = WashSerializer
    permission_classes = [RolePermission]
    capability_map = {
        "list": ["washes.view"],
        "retrieve": ["washes.view"],
        "receipt": ["washes.view"],
        "create": ["washes.create"],
        "update": ["washes.update"],
        "partial_update": ["washes.update"],
        "destroy": ["washes.delete"],
    }

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params
        if params.get("from"):
            queryset = queryset.filter(washed_at__gte=start_of_day(parse_day(params["from"], "from")))
        if params.get("to"):
            end = parse_day(params["to"], "to")
            queryset = queryset.filter(washed_at__lt=start_of_day(date.fromordinal(end.toordinal() + 1)))
        if params.get("staff"):
            queryset = queryset.filter(staff_id=params["staff"])
        if params.get("customer"):
            queryset = queryset.filter(customer_id=params["customer"])
        if params.get("free") is not None:
            queryset = queryset.filter(is_free=str(params["free"]).lower() in {"1", "true", "yes"})
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = WashCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        wash = create_wash(actor=request.user, **serializer.validated_data)
        return Response(WashSerializer(wash).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        wash = self.get_object()
        serializer = WashUpdateSerializer(data=request.data, partial=kwargs.get("partial", False))
        serializer.is_valid(raise_exception=True)
        wash = update_wash(wash, actor=request.user, **serializer.validated_data)
        return Response(WashSerializer(wash).data)

    def perform_destroy(self, instance):
        delete_wash(instance, actor=self.request.user)

    @action(detail=True, methods=["get"])
    def receipt(self, request, pk=None):
        wash = self.get_object()
        business = AppSettings.get_solo()
        return Response(
            {
                "business": {
                    "name": business.business_name,
                    "address": business.business_address,
                    "phone": business.business_phone,
                    "currency": business.currency_code,
                    "header": business.receipt_header,
                    "footer": business.receipt_footer,
                },
                "receipt_no": wash.receipt_no,
                "washed_at": wash.washed_at,
                "service": wash.service.name,
                "car_type": wash.car_type.label,
                "vehicle_reg": wash.vehicle_reg,
                "customer": wash.customer.name if wash.customer else None,
                "staff": wash.staff.name if wash.staff and business.show_staff_on_receipt else None,
                "amount": str(wash.unit_price),
                "is_free": wash.is_free,
                "promo_code": wash.promo_code or None,
            }
        )
