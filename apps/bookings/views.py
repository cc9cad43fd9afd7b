"""API views for the booking domain."""

from __future__ import annotations

import logging

from django.conf import settings  # type: ignore
from django.utils.decorators import method_decorator  # type: ignore
from django_ratelimit.decorators import ratelimit  # type: ignore
from drf_spectacular.utils import extend_schema  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .application.checkout import prepare_checkout
from .application.command_handlers import (
    CancelBookingCommand,
    CancelBookingHandler,
    ConfirmBookingCommand,
    ConfirmBookingHandler,
    CreateBookingHandler,
)
from .application.lookup import (
    LOOKUP_ERROR_MESSAGE,
    authorize_booking_access,
    lookup_by_credentials,
    lookup_by_token,
)
from .application.tokens import exchange_lookup_token, lookup_tokens, verification_tokens
from .domain.errors import ErrorCode
from .models import Booking
from .serializers import (
    AvailabilityQuerySerializer,
    BookingCreateSerializer,
    BookingDetailsSerializer,
    BookingLookupSerializer,
    BulkAvailabilitySerializer,
    CalendarQuerySerializer,
    CancelBookingSerializer,
    CheckoutSerializer,
    ConfirmBookingSerializer,
    DateAvailabilitySerializer,
    TokenSerializer,
    UnitAvailabilitySerializer,
)
from .services import (
    check_stays_availability,
    check_unit_availability,
    get_date_range_availability,
    month_bounds,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.ROOM_UNAVAILABLE: status.HTTP_409_CONFLICT,
    ErrorCode.AVAILABILITY_CHANGED: status.HTTP_409_CONFLICT,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ACCESS_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorCode.TOKEN_EXPIRED: status.HTTP_403_FORBIDDEN,
    ErrorCode.INVALID_STATE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.PRICE_MISMATCH: status.HTTP_409_CONFLICT,
}

TOO_MANY_REQUESTS_MESSAGE = "Too many requests. Please try again later."


def _rate(setting_name: str, default: str):
    def rate(group, request) -> str:
        return getattr(settings, setting_name, default)

    return rate


def _error_response(error: str | None, code: ErrorCode | None) -> Response:
    return Response(
        {"detail": error, "code": code.value if code else None},
        status=ERROR_STATUS.get(code, status.HTTP_400_BAD_REQUEST),
    )


def _too_many_requests() -> Response:
    return Response({"detail": TOO_MANY_REQUESTS_MESSAGE}, status=status.HTTP_429_TOO_MANY_REQUESTS)


def _session_email(request) -> str | None:
    user = request.user
    if user and user.is_authenticated:
        return user.email or None
    return None


class AvailabilityViewSet(viewsets.ViewSet):
    """Advisory availability for room types. Results may be stale by booking time."""

    permission_classes = [permissions.AllowAny]

    @extend_schema(parameters=[AvailabilityQuerySerializer], responses=UnitAvailabilitySerializer)
    def list(self, request):  # type: ignore
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        room_type_id = query.validated_data["room_type"]

        results = check_unit_availability([
            (room_type_id, query.validated_data["check_in"], query.validated_data["check_out"]),
        ])
        return Response(UnitAvailabilitySerializer(results[room_type_id]).data)

    @extend_schema(request=BulkAvailabilitySerializer, responses=UnitAvailabilitySerializer(many=True))
    @action(detail=False, methods=["post"])
    def bulk(self, request):  # type: ignore
        serializer = BulkAvailabilitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        results = check_stays_availability(
            (check["room_type"], check["check_in"], check["check_out"])
            for check in serializer.validated_data["checks"]
        )
        return Response(UnitAvailabilitySerializer(results, many=True).data)

    @extend_schema(parameters=[CalendarQuerySerializer], responses=DateAvailabilitySerializer(many=True))
    @action(detail=False, methods=["get"])
    def calendar(self, request):  # type: ignore
        query = CalendarQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        year, month = query.validated_data["month"]
        start, end = month_bounds(year, month)
        days = get_date_range_availability(query.validated_data["room_type"], start, end)
        return Response(DateAvailabilitySerializer(days, many=True).data)


class BookingViewSet(viewsets.GenericViewSet):
    """
    Guest booking flow.

    Guests need no account: ownership is proven by the booking email
    (signed-in users) or by a token sent to that email.
    """

    queryset = Booking.objects.all()
    permission_classes = [permissions.AllowAny]
    lookup_value_regex = r"\d+"

    @extend_schema(request=BookingCreateSerializer)
    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user_id = request.user.pk if request.user and request.user.is_authenticated else None
        result = CreateBookingHandler().handle(serializer.to_command(user_id=user_id))

        if not result.success:
            response = _error_response(result.error, result.code)
            if result.unavailable_room_types:
                response.data["unavailable_room_types"] = result.unavailable_room_types
            return response

        return Response(
            {
                "booking_id": result.booking_id,
                "reference": result.reference,
                "total_amount": str(result.total_amount),
                "verification_token": result.verification_token,
                "token_expires_at": result.token_expires_at,
            },
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(request=BookingLookupSerializer, responses=BookingDetailsSerializer)
    @method_decorator(ratelimit(
        group="bookings.lookup",
        key="ip",
        rate=_rate("BOOKING_RATELIMIT_LOOKUP", "5/m"),
        method="POST",
        block=False,
    ))
    @action(detail=False, methods=["post"])
    def lookup(self, request):  # type: ignore
        if getattr(request, "limited", False):
            return _too_many_requests()

        serializer = BookingLookupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        details = lookup_by_credentials(
            serializer.validated_data["reference"],
            serializer.validated_data["email"],
        )
        if details is None:
            return Response({"detail": LOOKUP_ERROR_MESSAGE}, status=status.HTTP_404_NOT_FOUND)

        return Response(BookingDetailsSerializer(details).data)

    @extend_schema(responses=BookingDetailsSerializer)
    @method_decorator(ratelimit(
        group="bookings.lookup",
        key="ip",
        rate=_rate("BOOKING_RATELIMIT_LOOKUP", "5/m"),
        block=False,
    ))
    @action(detail=False, methods=["get"], url_path=r"lookup/(?P<token>[^/]+)")
    def lookup_token(self, request, token=None):  # type: ignore
        if getattr(request, "limited", False):
            return _too_many_requests()

        result = lookup_by_token(token)
        if result.booking is None:
            if result.expired:
                return Response(
                    {"detail": "This link has expired. Please look up your booking again."},
                    status=status.HTTP_403_FORBIDDEN,
                )
            return Response({"detail": LOOKUP_ERROR_MESSAGE}, status=status.HTTP_404_NOT_FOUND)

        return Response(BookingDetailsSerializer(result.booking).data)

    @extend_schema(request=TokenSerializer)
    @action(detail=False, methods=["post"])
    def verification(self, request):  # type: ignore
        serializer = TokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = exchange_lookup_token(serializer.validated_data["token"])
        if not result.success:
            return _error_response(result.error, result.code)

        return Response({
            "booking_id": result.booking_id,
            "verification_token": result.verification_token,
            "expires_at": result.expires_at,
        })

    @extend_schema(request=CancelBookingSerializer)
    @method_decorator(ratelimit(
        group="bookings.cancel",
        key="ip",
        rate=_rate("BOOKING_RATELIMIT_CANCEL", "5/m"),
        method="POST",
        block=False,
    ))
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        if getattr(request, "limited", False):
            return _too_many_requests()

        serializer = CancelBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = Booking.objects.filter(pk=pk).first()
        decision = None
        if booking is not None:
            decision = authorize_booking_access(
                booking,
                _session_email(request),
                serializer.validated_data["token"],
                (verification_tokens, lookup_tokens),
            )

        if decision is None or not decision.allowed:
            if decision is not None and decision.expired:
                return _error_response(
                    "This link has expired. Please use the booking lookup form to request a new link.",
                    ErrorCode.TOKEN_EXPIRED,
                )
            return _error_response("Access denied.", ErrorCode.ACCESS_DENIED)

        result = CancelBookingHandler().handle(CancelBookingCommand(
            booking_id=booking.pk,
            reason=serializer.validated_data["reason"],
        ))
        if not result.success:
            return _error_response(result.error, result.code)

        return Response({
            "reference": result.reference,
            "status": Booking.Status.CANCELLED,
            "refund_amount": str(result.refund_amount),
            "cancellation_fee": str(result.cancellation_fee),
            "is_free_cancellation": result.is_free_cancellation,
        })

    @extend_schema(request=CheckoutSerializer)
    @method_decorator(ratelimit(
        group="bookings.checkout",
        key="ip",
        rate=_rate("BOOKING_RATELIMIT_CHECKOUT", "3/m"),
        method="POST",
        block=False,
    ))
    @action(detail=True, methods=["post"])
    def checkout(self, request, pk=None):  # type: ignore
        if getattr(request, "limited", False):
            return _too_many_requests()

        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = prepare_checkout(
            int(pk),
            _session_email(request),
            serializer.validated_data["verification_token"],
        )
        if not result.allowed:
            return _error_response(result.error, result.code)

        return Response({"amount": str(result.amount), "currency": result.currency})

    @extend_schema(request=ConfirmBookingSerializer)
    @action(detail=True, methods=["post"], permission_classes=[permissions.IsAdminUser])
    def confirm(self, request, pk=None):  # type: ignore
        serializer = ConfirmBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ConfirmBookingHandler().handle(ConfirmBookingCommand(
            booking_id=int(pk),
            amount_paid=serializer.validated_data["amount_paid"],
        ))
        if not result.success:
            return _error_response(result.error, result.code)

        return Response({
            "reference": result.reference,
            "status": Booking.Status.CONFIRMED,
            "lookup_token": result.lookup_token,
            "lookup_token_expires_at": result.lookup_token_expires_at,
        })
