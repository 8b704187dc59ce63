# public/views/order.py
"""
PUBLIC ORDER STATUS

GET /api/public/order/<order_id>/

Polled by the storefront "thank you" page. Exposes status + totals only,
never the customer snapshot.
"""

from __future__ import annotations

from django.shortcuts import get_object_or_404
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.models import Order
from public.serializers import PublicOrderStatusSerializer
from public.throttles import PublicPollThrottle


class PublicOrderStatusView(APIView):
    permission_classes = [AllowAny]
    throttle_classes = [PublicPollThrottle]

    @extend_schema(
        tags=["Public"],
        responses={
            200: PublicOrderStatusSerializer,
            404: OpenApiResponse(description="Order not found"),
            429: OpenApiResponse(description="Rate limited"),
        },
    )
    def get(self, request, order_id, *args, **kwargs):
        order = get_object_or_404(Order, id=order_id)
        return Response(PublicOrderStatusSerializer(order).data, status=status.HTTP_200_OK)
