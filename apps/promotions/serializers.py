from rest_framework import serializers

from apps.common.periods import parse_month
from apps.customers.models import normalize_plate
from apps.promotions.models import FeaturedVehicle, Promotion


class PromotionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Promotion
        fields = ["id", "code", "name", "description", "is_active", "updated_at"]
        read_only_fields = ["id", "code", "updated_at"]


class FeaturedVehicleSerializer(serializers.ModelSerializer):
    month = serializers.SerializerMethodField()
    featured_by = serializers.CharField(source="featured_by.username", read_only=True, default=None)

    class Meta:
        model = FeaturedVehicle
        fields = ["id", "vehicle_reg", "month", "featured_by", "used_at", "created_at"]
        read_only_fields = fields

    def get_month(self, obj):
        return obj.month.strftime("%Y-%m")


class FeatureVehicleInputSerializer(serializers.Serializer):
    vehicle_reg = serializers.CharField(max_length=20)
    month = serializers.CharField(max_length=10, required=False, allow_blank=True)

    def validate_vehicle_reg(self, value):
        plate = normalize_plate(value)
        if not plate:
            raise serializers.ValidationError("vehicle_reg is required")
        return plate

    def validate_month(self, value):
        if not value:
            return None
        parsed = parse_month(value)
        if parsed is None:
            raise serializers.ValidationError("month must be formatted as YYYY-MM")
        return parsed
