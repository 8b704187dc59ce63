# public/views/coupon.py
"""
PUBLIC COUPON CHECK

POST /api/public/coupons/validate/

Lets the storefront show a discount before checkout. Nothing is reserved:
checkout re-validates against the subtotal at commit time.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.parsers import JSONParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.services.coupon_validator import validate_coupon
from orders.services.exceptions import CouponError
from orders.services.money import round_money
from public.serializers import PublicCouponValidateSerializer, PublicErrorResponseSerializer
from public.throttles import PublicPollThrottle
from public.views.errors import checkout_error_response, store_not_found_response
from store.services.configuration import (
    StoreNotFoundError,
    checkout_config_for,
    coupons_matching,
    get_active_store,
)


class PublicCouponValidateView(APIView):
    permission_classes = [AllowAny]
    parser_classes = [JSONParser]
    throttle_classes = [PublicPollThrottle]

    @extend_schema(
        request=PublicCouponValidateSerializer,
        responses={
            200: OpenApiResponse(description="{ok, code, discount_amount}"),
            404: PublicErrorResponseSerializer,
            409: PublicErrorResponseSerializer,
            429: OpenApiResponse(description="Rate limited"),
        },
        tags=["Public"],
    )
    def post(self, request):
        s = PublicCouponValidateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            store = get_active_store(store_id=data["store_id"])
        except StoreNotFoundError:
            return store_not_found_response()

        config = checkout_config_for(store)

        try:
            applied = validate_coupon(
                data["code"], coupons_matching(store, data["code"]), data["subtotal"]
            )
        except CouponError as exc:
            return checkout_error_response(exc)

        return Response(
            {
                "ok": True,
                "code": applied.code,
                "discount_type": applied.coupon.discount_type,
                "discount_amount": str(round_money(applied.discount_amount, config.minor_units)),
            },
            status=status.HTTP_200_OK,
        )
