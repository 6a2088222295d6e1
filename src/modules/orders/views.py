"""Order API views.

Exposes the ``OrderService`` via HTTP using a DRF ViewSet.  Domain
exceptions propagate to the project's exception handler, which renders
them with their status code; the view never catches them itself.
"""

from __future__ import annotations

from typing import Any

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.accounts.principal import Principal
from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.core.pagination import PageResult
from modules.orders.dtos import CreateOrderDTO
from modules.orders.permissions import OrderActionPermission
from modules.orders.policies import OrderAction
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    AdminOrderListQuerySerializer,
    AnalyticsQuerySerializer,
    CancelOrderSerializer,
    CreateOrderSerializer,
    OrderAnalyticsSerializer,
    OrderDetailSerializer,
    OrderListQuerySerializer,
    OrderSerializer,
    UpdateStatusSerializer,
)
from modules.orders.services import OrderService


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    permission_classes = [IsAuthenticated, OrderActionPermission]
    serializer_class = OrderSerializer
    order_actions = {
        "create": OrderAction.PLACE,
        "retrieve": OrderAction.VIEW,
        "my_orders": OrderAction.LIST_OWN,
        "seller_orders": OrderAction.LIST_SELLER,
        "all_orders": OrderAction.LIST_ALL,
        "analytics": OrderAction.ANALYTICS,
        "update_status": OrderAction.UPDATE_STATUS,
        "cancel": OrderAction.CANCEL,
    }

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttling scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"retrieve", "my_orders", "seller_orders", "all_orders"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    @property
    def principal(self) -> Principal:
        return Principal.from_user(self.request.user)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @extend_schema(request=CreateOrderSerializer, responses={201: OrderSerializer})
    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        dto = CreateOrderDTO.model_validate(serializer.validated_data)
        order = self._service.place_order(self.principal, dto)
        return Response(
            {
                "success": True,
                "message": "Order created successfully.",
                "order": OrderDetailSerializer(order).data,
            },
            status=status.HTTP_201_CREATED,
        )

    # ------------------------------------------------------------------
    # Retrieve
    # ------------------------------------------------------------------

    @extend_schema(responses={200: OrderDetailSerializer})
    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order = self._service.get_order(self.principal, pk)
        return Response(
            {
                "success": True,
                "message": "Order retrieved successfully.",
                "order": OrderDetailSerializer(order).data,
            }
        )

    # ------------------------------------------------------------------
    # Scoped listings
    # ------------------------------------------------------------------

    @extend_schema(parameters=[OrderListQuerySerializer])
    @action(detail=False, methods=["get"], url_path="my-orders")
    def my_orders(self, request: Request) -> Response:
        """GET /api/v1/orders/my-orders/"""
        query = self._list_query(OrderListQuerySerializer)
        result = self._service.list_customer_orders(self.principal, **query)
        return self._page_response(result)

    @extend_schema(parameters=[OrderListQuerySerializer])
    @action(detail=False, methods=["get"], url_path="seller-orders")
    def seller_orders(self, request: Request) -> Response:
        """GET /api/v1/orders/seller-orders/

        Each order's ``items`` holds only the calling seller's lines.
        """
        query = self._list_query(OrderListQuerySerializer)
        result = self._service.list_seller_orders(self.principal, **query)
        return self._page_response(result)

    @extend_schema(parameters=[AdminOrderListQuerySerializer])
    @action(detail=False, methods=["get"], url_path="all")
    def all_orders(self, request: Request) -> Response:
        """GET /api/v1/orders/all/"""
        serializer = AdminOrderListQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = self._service.list_all_orders(
            self.principal,
            page=data["page"],
            limit=data.get("limit"),
            status=data.get("status"),
            filters=serializer.filters(),
        )
        return self._page_response(result)

    @extend_schema(
        parameters=[AnalyticsQuerySerializer],
        responses={200: OrderAnalyticsSerializer},
    )
    @action(detail=False, methods=["get"])
    def analytics(self, request: Request) -> Response:
        """GET /api/v1/orders/analytics/"""
        query = AnalyticsQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = self._service.get_analytics(
            self.principal, seller_id=query.validated_data.get("seller_id")
        )
        return Response(
            {"success": True, "analytics": OrderAnalyticsSerializer(result).data}
        )

    # ------------------------------------------------------------------
    # Status update / cancel
    # ------------------------------------------------------------------

    @extend_schema(
        request=UpdateStatusSerializer,
        responses={
            200: OrderDetailSerializer,
            400: OpenApiResponse(description="Invalid status or transition"),
        },
    )
    @action(detail=True, methods=["put", "patch"], url_path="status")
    def update_status(self, request: Request, pk: str | None = None) -> Response:
        """PUT/PATCH /api/v1/orders/{pk}/status/"""
        serializer = UpdateStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = self._service.update_status(
            self.principal,
            pk,
            new_status=data["status"],
            notes=data["notes"],
            tracking_number=data["tracking_number"],
        )
        return Response(
            {
                "success": True,
                "message": "Order status updated successfully.",
                "order": OrderDetailSerializer(order).data,
            }
        )

    @extend_schema(request=CancelOrderSerializer, responses={200: OrderDetailSerializer})
    @action(detail=True, methods=["put", "post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """PUT/POST /api/v1/orders/{pk}/cancel/"""
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = self._service.cancel_order(
            self.principal, pk, serializer.validated_data["cancel_reason"]
        )
        return Response(
            {
                "success": True,
                "message": "Order cancelled successfully.",
                "order": OrderDetailSerializer(order).data,
            }
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _list_query(self, serializer_class: type) -> dict[str, Any]:
        serializer = serializer_class(data=self.request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        return {
            "page": data["page"],
            "limit": data.get("limit"),
            "status": data.get("status"),
        }

    @staticmethod
    def _page_response(result: PageResult[Any]) -> Response:
        return Response(
            {
                "success": True,
                "orders": OrderSerializer(result.items, many=True).data,
                "total_orders": result.total,
                "current_page": result.page,
                "total_pages": result.total_pages,
            }
        )
