from django.utils import timezone
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.response import Response

from apps.audit.services import audit_trail
from apps.common.permissions import RolePermission
from apps.draws.models import DailyFreeCandidate, DailyFreeWinner
from apps.draws.registry import (
    WinnerIdentity,
    approve_winner,
    draw_winner,
    get_approved_winner,
    list_candidates,
    redeem_winner,
    reschedule_winner,
    revoke_winner,
    shortlist_candidates,
    with_winner_flag,
)
from apps.draws.serializers import (
    ApproveInputSerializer,
    CandidateQuerySerializer,
    CandidateSerializer,
    DrawInputSerializer,
    RescheduleInputSerializer,
    RevokeInputSerializer,
    StoredCandidateSerializer,
    WinnerSerializer,
)


def _query_date(params, field="date"):
    if not params.get(field):
        return None
    serializer = CandidateQuerySerializer(data={"date": params[field]})
    if not serializer.is_valid():
        raise ValidationError({field: serializer.errors["date"]})
    return serializer.validated_data["date"]


def _candidate_filters(data):
    return {
        "min_washes": data["min_washes"],
        "service_id": data.get("service_id"),
        "service_name": data.get("service_name") or None,
    }


class DailyWinnerViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    queryset = DailyFreeWinner.objects.select_related("approved_by", "created_by")
    serializer_class = WinnerSerializer
    permission_classes = [RolePermission]
    capability_map = {
        "list": ["draws.view"],
        "retrieve": ["draws.view"],
        "current": ["draws.view"],
        "eligibles": ["draws.view"],
        "history": ["draws.view"],
        "draw": ["draws.manage"],
        "approve": ["draws.manage"],
        "reschedule": ["draws.manage"],
        "revoke": ["draws.manage"],
        "redeem": ["draws.manage"],
    }

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action != "list":
            return queryset
        draw_date = _query_date(self.request.query_params)
        if draw_date:
            queryset = queryset.filter(draw_date=draw_date)
        status_filter = self.request.query_params.get("status")
        if status_filter:
            queryset = queryset.filter(status=status_filter.upper())
        return queryset

    @action(detail=False, methods=["get"])
    def current(self, request):
        draw_date = _query_date(request.query_params) or timezone.localdate()
        winner = get_approved_winner(draw_date)
        return Response(WinnerSerializer(winner).data if winner else None)

    @action(detail=False, methods=["get"])
    def eligibles(self, request):
        serializer = CandidateQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        candidates = list_candidates(
            data.get("date") or timezone.localdate(),
            limit=data["limit"],
            **_candidate_filters(data),
        )
        return Response(CandidateSerializer(candidates, many=True).data)

    @action(detail=False, methods=["post"])
    def draw(self, request):
        serializer = DrawInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        outcome = draw_winner(
            data.get("date") or timezone.localdate(),
            auto_approve=data["auto_approve"],
            operator=request.user,
            **_candidate_filters(data),
        )
        payload = {
            "winner": WinnerSerializer(outcome.winner).data if outcome.winner else None,
            "candidate": CandidateSerializer(outcome.candidate).data if outcome.candidate else None,
            "created": outcome.created,
        }
        if outcome.winner is None:
            payload["notice"] = "Candidate suggested. Approve it to confirm the winner for this date."
        return Response(payload, status=status.HTTP_201_CREATED if outcome.created else status.HTTP_200_OK)

    @action(detail=False, methods=["post"])
    def approve(self, request):
        serializer = ApproveInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        winner = approve_winner(
            data["date"],
            WinnerIdentity.from_data(data),
            operator=request.user,
            note=data["note"],
        )
        return Response(WinnerSerializer(winner).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["post"])
    def reschedule(self, request):
        serializer = RescheduleInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        if data.get("candidate_id"):
            stored = DailyFreeCandidate.objects.filter(pk=data["candidate_id"]).first()
            if stored is None:
                raise NotFound("Candidate not found.")
            identity = WinnerIdentity(
                customer_id=stored.customer_id,
                vehicle_reg=stored.vehicle_reg,
                customer_phone=stored.customer_phone,
                customer_name=stored.customer_name,
            )
        else:
            identity = WinnerIdentity.from_data(data)
        winner = reschedule_winner(identity, data["to_date"], operator=request.user, note=data["note"])
        return Response(WinnerSerializer(winner).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def revoke(self, request, pk=None):
        serializer = RevokeInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        winner = revoke_winner(pk, serializer.validated_data["reason"], operator=request.user)
        return Response(WinnerSerializer(winner).data)

    @action(detail=True, methods=["post"])
    def redeem(self, request, pk=None):
        winner = redeem_winner(pk, operator=request.user)
        return Response(WinnerSerializer(winner).data)

    @action(detail=True, methods=["get"])
    def history(self, request, pk=None):
        winner = self.get_object()
        entries = audit_trail(entity_type="daily_free_winner", entity_id=winner.id)
        return Response(
            [
                {
                    "action": entry.action,
                    "actor": entry.actor.username if entry.actor else None,
                    "payload": entry.payload,
                    "created_at": entry.created_at,
                }
                for entry in entries
            ]
        )


class DailyCandidateViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    serializer_class = StoredCandidateSerializer
    permission_classes = [RolePermission]
    capability_map = {
        "list": ["draws.view"],
        "create": ["draws.manage"],
    }

    def get_queryset(self):
        queryset = with_winner_flag(DailyFreeCandidate.objects.all())
        draw_date = _query_date(self.request.query_params)
        if draw_date:
            queryset = queryset.filter(draw_date=draw_date)
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = CandidateQuerySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        draw_date = data.get("date") or timezone.localdate()
        entries, created_count = shortlist_candidates(
            draw_date,
            limit=data["limit"],
            operator=request.user,
            **_candidate_filters(data),
        )
        entries = with_winner_flag(DailyFreeCandidate.objects.filter(pk__in=[entry.pk for entry in entries]))
        return Response(
            {
                "date": draw_date.isoformat(),
                "created": created_count,
                "results": StoredCandidateSerializer(entries, many=True).data,
            },
            status=status.HTTP_201_CREATED if created_count else status.HTTP_200_OK,
        )
