# public/views/errors.py

"""
Typed checkout failures -> HTTP responses.

Body shape: {"ok": false, "error": {"type", "code", "detail"[, "reason"]}}

    CheckoutValidationError -> 400 (TotalMismatchError -> 409)
    CouponError             -> 409
    CommitError             -> 500
    StoreNotFoundError      -> 404
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.response import Response

from orders.services.exceptions import (
    CheckoutError,
    CheckoutValidationError,
    CommitError,
    CouponError,
    TotalMismatchError,
)


def error_response(*, type_: str, code: str, detail: str, http_status: int, **extra) -> Response:
    error = {"type": type_, "code": code, "detail": detail}
    error.update(extra)
    return Response({"ok": False, "error": error}, status=http_status)


def checkout_error_response(exc: CheckoutError) -> Response:
    if isinstance(exc, TotalMismatchError):
        return error_response(
            type_="validation",
            code=exc.code,
            detail=exc.detail,
            http_status=status.HTTP_409_CONFLICT,
            expected_total=str(exc.expected),
            actual_total=str(exc.actual),
        )

    if isinstance(exc, CheckoutValidationError):
        extra = {"fields": exc.fields} if hasattr(exc, "fields") else {}
        return error_response(
            type_="validation",
            code=exc.code,
            detail=exc.detail,
            http_status=status.HTTP_400_BAD_REQUEST,
            **extra,
        )

    if isinstance(exc, CouponError):
        return error_response(
            type_="coupon",
            code=exc.code,
            detail=exc.detail,
            http_status=status.HTTP_409_CONFLICT,
            reason=exc.reason.value,
        )

    if isinstance(exc, CommitError):
        return error_response(
            type_="commit",
            code=exc.code,
            detail=exc.detail,
            http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return error_response(
        type_="checkout",
        code=exc.code,
        detail=exc.detail,
        http_status=status.HTTP_400_BAD_REQUEST,
    )


def store_not_found_response() -> Response:
    return error_response(
        type_="not_found",
        code="store_not_found",
        detail="Store not found",
        http_status=status.HTTP_404_NOT_FOUND,
    )
