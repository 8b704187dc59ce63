# public/views/checkout.py
"""
PUBLIC CHECKOUT (STOREFRONT)

- POST /api/public/checkout/quote/        pricing preview (no writes)
- POST /api/public/checkout/              full cart checkout
- POST /api/public/checkout/quick-order/  single-product order from the product page

Both write endpoints call the same orchestrator (orders.services.checkout_orchestrator),
so pricing and commit semantics are identical.

Inputs outside the body:
- Idempotency-Key header (falls back to body.idempotency_key)
- affiliate_code cookie  (falls back to body.referral_code)

Security hardening:
- Throttle (public_write) on write endpoints, (public_poll) on the quote
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.parsers import JSONParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.models import Order
from orders.services.checkout_orchestrator import FulfillmentDetails, place_order, price_cart
from orders.services.exceptions import CheckoutError
from orders.services.quick_order import build_quick_order_lines
from public.serializers import (
    PublicCheckoutQuoteSerializer,
    PublicCheckoutResponseSerializer,
    PublicCheckoutSerializer,
    PublicErrorResponseSerializer,
    PublicQuickOrderSerializer,
    bump_offer_from,
    cart_lines_from,
)
from public.throttles import PublicPollThrottle, PublicWriteThrottle
from public.views.errors import checkout_error_response, store_not_found_response
from store.services.configuration import (
    StoreNotFoundError,
    checkout_config_for,
    get_active_store,
)

logger = logging.getLogger(__name__)

AFFILIATE_COOKIE = "affiliate_code"

_ERROR_RESPONSES = {
    400: PublicErrorResponseSerializer,
    404: PublicErrorResponseSerializer,
    409: PublicErrorResponseSerializer,
    429: OpenApiResponse(description="Rate limited"),
    500: PublicErrorResponseSerializer,
}


def _idempotency_key(request, data) -> str | None:
    header = (request.headers.get("Idempotency-Key") or "").strip()
    return header or (data.get("idempotency_key") or None)


def _referral_code(request, data) -> str | None:
    body = (data.get("referral_code") or "").strip()
    return body or (request.COOKIES.get(AFFILIATE_COOKIE) or "").strip() or None


def _fulfillment(data) -> FulfillmentDetails:
    return FulfillmentDetails(
        name=data.get("name") or "",
        phone=data.get("phone") or "",
        address=data.get("address") or "",
        alt_phone=data.get("alt_phone") or "",
        city=data.get("city") or "",
        region_id=data.get("region_id"),
        notes=data.get("notes") or "",
    )


def _created_response(result) -> Response:
    order = result.order
    return Response(
        {
            "ok": True,
            "order_id": str(order.id),
            "order_number": order.order_number,
            "currency": order.currency,
            "pricing": result.pricing.as_dict(),
            "replayed": result.replayed,
        },
        status=status.HTTP_200_OK if result.replayed else status.HTTP_201_CREATED,
    )


class PublicCheckoutQuoteView(APIView):
    permission_classes = [AllowAny]
    parser_classes = [JSONParser]
    throttle_classes = [PublicPollThrottle]

    @extend_schema(
        request=PublicCheckoutQuoteSerializer,
        responses={200: OpenApiResponse(description="Pricing preview"), **_ERROR_RESPONSES},
        description="Price a cart (shipping, coupon, loyalty points, bump offer). Writes nothing.",
        tags=["Public"],
    )
    def post(self, request):
        s = PublicCheckoutQuoteSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            store = get_active_store(store_id=data["store_id"])
        except StoreNotFoundError:
            return store_not_found_response()

        config = checkout_config_for(store)

        try:
            quote = price_cart(
                config=config,
                lines=cart_lines_from(data["items"]),
                region_id=data.get("region_id"),
                coupon_code=data.get("coupon_code"),
                phone=data.get("phone"),
                redeem=data.get("redeem_points", False),
                bump_offer=bump_offer_from(data.get("bump_offer")),
            )
        except CheckoutError as exc:
            return checkout_error_response(exc)

        pricing = quote.pricing.quantize(config.minor_units)

        coupon = None
        if quote.coupon is not None:
            coupon = {"code": quote.coupon.code, "discount_amount": str(pricing.discount_amount)}

        rejection = None
        if quote.coupon_rejection is not None:
            rejection = {"reason": quote.coupon_rejection.value, "detail": quote.coupon_message}

        return Response(
            {
                "ok": True,
                "currency": config.currency,
                "pricing": pricing.as_dict(),
                "coupon": coupon,
                "coupon_rejection": rejection,
                "shipping_indeterminate": quote.shipping_indeterminate,
            },
            status=status.HTTP_200_OK,
        )


class PublicCheckoutView(APIView):
    permission_classes = [AllowAny]
    parser_classes = [JSONParser]
    throttle_classes = [PublicWriteThrottle]

    @extend_schema(
        request=PublicCheckoutSerializer,
        responses={
            200: OpenApiResponse(description="Idempotent replay of an earlier order"),
            201: PublicCheckoutResponseSerializer,
            **_ERROR_RESPONSES,
        },
        description=(
            "Commit a cart as an order. Totals are recomputed server-side; "
            "send expected_total to fail fast when the cart changed."
        ),
        tags=["Public"],
    )
    def post(self, request):
        s = PublicCheckoutSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            store = get_active_store(store_id=data["store_id"])
        except StoreNotFoundError:
            return store_not_found_response()

        try:
            result = place_order(
                store=store,
                lines=cart_lines_from(data["items"]),
                fulfillment=_fulfillment(data["customer"]),
                coupon_code=data.get("coupon_code"),
                redeem_points=data.get("redeem_points", False),
                bump_offer=bump_offer_from(data.get("bump_offer")),
                referral_code=_referral_code(request, data),
                idempotency_key=_idempotency_key(request, data),
                expected_total=data.get("expected_total"),
                language=data.get("language") or None,
                source=Order.SOURCE_CHECKOUT,
            )
        except CheckoutError as exc:
            logger.info(
                "Checkout rejected",
                extra={"store_id": str(store.id), "code": exc.code, "detail": exc.detail},
            )
            return checkout_error_response(exc)

        return _created_response(result)


class PublicQuickOrderView(APIView):
    permission_classes = [AllowAny]
    parser_classes = [JSONParser]
    throttle_classes = [PublicWriteThrottle]

    @extend_schema(
        request=PublicQuickOrderSerializer,
        responses={
            200: OpenApiResponse(description="Idempotent replay of an earlier order"),
            201: PublicCheckoutResponseSerializer,
            **_ERROR_RESPONSES,
        },
        description=(
            "Order N units of one product. Each unit becomes its own line with its "
            "chosen option modifiers folded into the unit price."
        ),
        tags=["Public"],
    )
    def post(self, request):
        s = PublicQuickOrderSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            store = get_active_store(store_id=data["store_id"])
        except StoreNotFoundError:
            return store_not_found_response()

        product = data["product"]
        lines = build_quick_order_lines(
            product_id=product["id"],
            product_name=product["name"],
            base_price=product["price"],
            quantity=data["quantity"],
            variants=data.get("variants") or [],
            selections=data.get("selections") or [],
        )

        try:
            result = place_order(
                store=store,
                lines=lines,
                fulfillment=_fulfillment(data["customer"]),
                coupon_code=data.get("coupon_code"),
                referral_code=_referral_code(request, data),
                idempotency_key=_idempotency_key(request, data),
                expected_total=data.get("expected_total"),
                language=data.get("language") or None,
                source=Order.SOURCE_QUICK_ORDER,
            )
        except CheckoutError as exc:
            logger.info(
                "Quick order rejected",
                extra={"store_id": str(store.id), "code": exc.code, "detail": exc.detail},
            )
            return checkout_error_response(exc)

        return _created_response(result)
