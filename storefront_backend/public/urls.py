# public/urls.py
"""
PUBLIC API URLS (STOREFRONT)

Base path (mounted in backend/urls.py):
    /api/public/

- POST /api/public/checkout/quote/
- POST /api/public/checkout/
- POST /api/public/checkout/quick-order/
- POST /api/public/coupons/validate/
- GET  /api/public/order/<order_id>/
"""

from __future__ import annotations

from django.urls import path

from public.views.checkout import (
    PublicCheckoutQuoteView,
    PublicCheckoutView,
    PublicQuickOrderView,
)
from public.views.coupon import PublicCouponValidateView
from public.views.order import PublicOrderStatusView

app_name = "public"

urlpatterns = [
    path("checkout/quote/", PublicCheckoutQuoteView.as_view(), name="public-checkout-quote"),
    path("checkout/quick-order/", PublicQuickOrderView.as_view(), name="public-quick-order"),
    path("checkout/", PublicCheckoutView.as_view(), name="public-checkout"),
    path("coupons/validate/", PublicCouponValidateView.as_view(), name="public-coupon-validate"),
    path("order/<uuid:order_id>/", PublicOrderStatusView.as_view(), name="public-order-status"),
]
