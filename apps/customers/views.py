from django.db.models import Q
from rest_framework import mixins, status, viewsets
from rest_framework.response import Response

from apps.audit.services import record_audit
from apps.common.permissions import RolePermission
from apps.customers.models import Customer, normalize_phone, normalize_plate
from apps.customers.serializers import CustomerSerializer, CustomerUpsertSerializer
from apps.customers.services import register_customer


class CustomerViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, mixins.CreateModelMixin, viewsets.GenericViewSet):
    queryset = Customer.objects.all()
    serializer_class = CustomerSerializer
    permission_classes = [RolePermission]
    capability_map = {
        "list": ["customers.view"],
        "retrieve": ["customers.view"],
        "create": ["customers.manage"],
    }

    def get_queryset(self):
        queryset = super().get_queryset()
        q = self.request.query_params.get("q", "").strip()
        if q:
            filters = Q(name__icontains=q) | Q(phone__icontains=q)
            digits = normalize_phone(q)
            if digits.isdigit():
                filters |= Q(phone_normalized__contains=digits)
            filters |= Q(vehicle_reg__contains=normalize_plate(q))
            queryset = queryset.filter(filters)
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = CustomerUpsertSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        customer, created = register_customer(**serializer.validated_data)
        if created:
            record_audit(
                actor=request.user,
                action="customer.create",
                entity_type="customer",
                entity_id=customer.id,
                payload=dict(serializer.validated_data),
            )
        return Response(
            CustomerSerializer(customer).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )
