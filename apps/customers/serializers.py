from rest_framework import serializers

from apps.customers.models import Customer


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = ["id", "name", "phone", "vehicle_reg", "visits_count", "last_visit", "created_at", "updated_at"]
        read_only_fields = fields


class CustomerUpsertSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    vehicle_reg = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if not attrs.get("phone", "").strip() and not attrs.get("vehicle_reg", "").strip():
            raise serializers.ValidationError({"phone": "phone or vehicle_reg is required"})
        return attrs
