from rest_framework import serializers

from apps.configuration.models import AppSettings


class AppSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = AppSettings
        fields = [
            "business_name",
            "business_address",
            "business_phone",
            "currency_code",
            "default_commission_pct",
            "receipt_header",
            "receipt_footer",
            "show_staff_on_receipt",
            "promo_free_enabled",
            "promo_free_prob",
            "promo_free_min_visits",
            "promo_free_daily_cap",
            "featured_free_once_per_month",
            "updated_at",
        ]
        read_only_fields = ["updated_at"]

    def validate_default_commission_pct(self, value):
        if value < 0 or value > 100:
            raise serializers.ValidationError("default_commission_pct must be between 0 and 100")
        return value

    def validate_promo_free_prob(self, value):
        if value < 0 or value > 1:
            raise serializers.ValidationError("promo_free_prob must be between 0 and 1")
        return value

    def validate_currency_code(self, value):
        value = value.strip().upper()
        if len(value) != 3:
            raise serializers.ValidationError("currency_code must be a 3-letter code")
        return value
