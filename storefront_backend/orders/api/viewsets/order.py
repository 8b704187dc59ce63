# orders/api/viewsets/order.py

"""
======================================================
PATH: orders/api/viewsets/order.py
======================================================
ORDER VIEWSET (STAFF)

Purpose:
- Order history for the store dashboard (list + retrieve).

Security:
- Requires IsAuthenticated (JWT)
- Owner-scoped: a user only sees orders of stores they own;
  superusers see everything

Filters (django-filter):
- ?status=pending|confirmed|shipped|delivered|cancelled
- ?store=<uuid>
- ?source=checkout|quick_order
- ?created_after=YYYY-MM-DD / ?created_before=YYYY-MM-DD
======================================================
"""

from __future__ import annotations

import django_filters
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from orders.models import Order
from orders.serializers import OrderSerializer


class OrderFilter(django_filters.FilterSet):
    created_after = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    created_before = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = Order
        fields = ["status", "store", "source"]


@extend_schema(tags=["Orders"])
class OrderViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend]
    filterset_class = OrderFilter

    def get_queryset(self):
        qs = (
            Order.objects.select_related("store", "customer", "referral_attribution__affiliate")
            .prefetch_related("items")
            .order_by("-created_at")
        )
        user = self.request.user
        if getattr(user, "is_superuser", False):
            return qs
        return qs.filter(store__owner=user)
