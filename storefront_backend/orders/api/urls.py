# orders/api/urls.py

"""
ORDERS API URLS (STAFF)

- GET /api/orders/          list (filters: status, store, source, created_after, created_before)
- GET /api/orders/<uuid>/   retrieve

Public storefront endpoints are mounted at /api/public/ and must NOT be included here.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from orders.api.viewsets.order import OrderViewSet

router = DefaultRouter()
router.register(r"", OrderViewSet, basename="orders")

urlpatterns = [
    path("", include(router.urls)),
]
