from rest_framework import serializers

from apps.catalog.models import CarType, Service
from apps.staff.models import Staff
from apps.washes.models import Wash


class WashSerializer(serializers.ModelSerializer):
    service_name = serializers.CharField(source="service.name", read_only=True)
    car_type_label = serializers.CharField(source="car_type.label", read_only=True)
    staff_name = serializers.CharField(source="staff.name", read_only=True, default=None)
    customer_name = serializers.CharField(source="customer.name", read_only=True, default=None)
    customer_phone = serializers.CharField(source="customer.phone", read_only=True, default=None)
    created_by = serializers.CharField(source="created_by.username", read_only=True, default=None)

    class Meta:
        model = Wash
        fields = [
            "id",
            "receipt_no",
            "service",
            "service_name",
            "car_type",
            "car_type_label",
            "staff",
            "staff_name",
            "customer",
            "customer_name",
            "customer_phone",
            "vehicle_reg",
            "unit_price",
            "commission_pct",
            "commission_amount",
            "profit_amount",
            "is_free",
            "promo_code",
            "washed_at",
            "created_by",
            "created_at",
        ]
        read_only_fields = fields


class WashCreateSerializer(serializers.Serializer):
    service = serializers.PrimaryKeyRelatedField(queryset=Service.objects.filter(is_active=True))
    car_type = serializers.PrimaryKeyRelatedField(queryset=CarType.objects.all())
    staff = serializers.PrimaryKeyRelatedField(queryset=Staff.objects.filter(is_active=True), required=False, allow_null=True)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True)
    commission_pct = serializers.DecimalField(
        max_digits=5,
        decimal_places=2,
        min_value=0,
        max_value=100,
        required=False,
        allow_null=True,
    )
    washed_at = serializers.DateTimeField(required=False, allow_null=True)
    customer_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    customer_phone = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    vehicle_reg = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")


class WashUpdateSerializer(serializers.Serializer):
    service = serializers.PrimaryKeyRelatedField(queryset=Service.objects.all(), required=False)
    car_type = serializers.PrimaryKeyRelatedField(queryset=CarType.objects.all(), required=False)
    staff = serializers.PrimaryKeyRelatedField(queryset=Staff.objects.all(), required=False, allow_null=True)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    commission_pct = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False)
    washed_at = serializers.DateTimeField(required=False)
    vehicle_reg = serializers.CharField(max_length=20, required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError({"detail": "Nothing to update."})
        return attrs
