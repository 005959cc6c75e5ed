from rest_framework import serializers

from apps.draws.models import DailyFreeCandidate, DailyFreeWinner
from apps.draws.registry import DEFAULT_LIMIT, DEFAULT_MIN_WASHES, MAX_LIMIT


class WinnerSerializer(serializers.ModelSerializer):
    approved_by = serializers.CharField(source="approved_by.username", read_only=True, default=None)
    created_by = serializers.CharField(source="created_by.username", read_only=True, default=None)

    class Meta:
        model = DailyFreeWinner
        fields = [
            "id",
            "draw_date",
            "customer",
            "vehicle_reg",
            "customer_phone",
            "customer_name",
            "status",
            "approved_by",
            "approved_at",
            "revoked_at",
            "used_at",
            "note",
            "created_by",
            "created_at",
        ]
        read_only_fields = fields


class CandidateSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField()
    vehicle_reg = serializers.CharField()
    customer_phone = serializers.CharField()
    customer_name = serializers.CharField()
    washes_in_month = serializers.IntegerField()
    last_wash = serializers.DateTimeField()
    eligible_reason = serializers.CharField()


class StoredCandidateSerializer(serializers.ModelSerializer):
    is_approved_winner = serializers.BooleanField(read_only=True, default=False)

    class Meta:
        model = DailyFreeCandidate
        fields = [
            "id",
            "draw_date",
            "customer",
            "vehicle_reg",
            "customer_phone",
            "customer_name",
            "washes_in_month",
            "last_wash",
            "eligible_reason",
            "is_approved_winner",
            "created_at",
        ]
        read_only_fields = fields


class CandidateQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    min_washes = serializers.IntegerField(min_value=0, required=False, default=DEFAULT_MIN_WASHES)
    service_id = serializers.UUIDField(required=False, allow_null=True)
    service_name = serializers.CharField(required=False, allow_blank=True)
    limit = serializers.IntegerField(required=False, default=DEFAULT_LIMIT)

    def validate_limit(self, value):
        return max(1, min(value, MAX_LIMIT))


class DrawInputSerializer(CandidateQuerySerializer):
    auto_approve = serializers.BooleanField(required=False, default=False)


class IdentityInputSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField(required=False, allow_null=True)
    vehicle_reg = serializers.CharField(max_length=20, required=False, allow_blank=True)
    customer_phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    customer_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    note = serializers.CharField(required=False, allow_blank=True, default="")


class ApproveInputSerializer(IdentityInputSerializer):
    date = serializers.DateField()


class RescheduleInputSerializer(IdentityInputSerializer):
    to_date = serializers.DateField()
    candidate_id = serializers.UUIDField(required=False, allow_null=True)


class RevokeInputSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")
