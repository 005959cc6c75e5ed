from rest_framework import serializers

from apps.catalog.models import CarType, Service, ServicePrice


class CarTypeSerializer(serializers.ModelSerializer):
    class Meta:
        model = CarType
        fields = ["id", "label", "description", "sort_order", "created_at", "updated_at"]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_label(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("label is required")
        return value


class ServicePriceSerializer(serializers.ModelSerializer):
    car_type_label = serializers.CharField(source="car_type.label", read_only=True)

    class Meta:
        model = ServicePrice
        fields = ["car_type", "car_type_label", "price"]
        read_only_fields = fields


class ServiceSerializer(serializers.ModelSerializer):
    prices = ServicePriceSerializer(many=True, read_only=True)

    class Meta:
        model = Service
        fields = ["id", "name", "description", "base_price", "is_active", "prices", "created_at", "updated_at"]
        read_only_fields = ["id", "prices", "created_at", "updated_at"]

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("name is required")
        return value

    def validate_base_price(self, value):
        if value < 0:
            raise serializers.ValidationError("base_price must be greater than or equal to 0")
        return value


class PriceUpsertSerializer(serializers.Serializer):
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
