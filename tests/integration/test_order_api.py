import uuid
from decimal import Decimal
from unittest.mock import patch

import pytest
from rest_framework.test import APIClient

from core.domain import StorageFailureException
from core.infrastructure.response import StatusCode
from orders.infrastructure.models.order_models import Order as OrderModel, Product as ProductModel

pytestmark = pytest.mark.django_db

ORDERS_URL = "/api/orders/"


@pytest.fixture
def buyer(django_user_model):
    return django_user_model.objects.create_user(username="buyer", password="pw")


@pytest.fixture
def other_buyer(django_user_model):
    return django_user_model.objects.create_user(username="other", password="pw")


@pytest.fixture
def staff(django_user_model):
    return django_user_model.objects.create_user(username="staff", password="pw", is_staff=True)


def _client(user=None):
    client = APIClient()
    if user is not None:
        client.force_authenticate(user=user)
    return client


@pytest.fixture
def product():
    return ProductModel.objects.create(name="P", price_amount=Decimal("10.00"), available_quantity=5)


def _place(user, product, quantity):
    return _client(user).post(
        ORDERS_URL,
        {"items": [{"product_id": str(product.id), "quantity": quantity}]},
        format="json",
    )


class TestPlaceOrderEndpoint:
    def test_created(self, buyer, product):
        response = _place(buyer, product, 3)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["code"] == StatusCode.CREATED
        order = body["data"]
        assert order["userId"] == str(buyer.pk)
        assert order["status"] == "PENDING"
        assert order["totalAmount"] == "30.00"
        assert order["currency"] == "CNY"
        assert order["items"][0]["productId"] == str(product.id)
        assert order["items"][0]["unitPrice"] == "10.00"
        assert order["items"][0]["subtotal"] == "30.00"
        assert {"id", "createdAt", "updatedAt"} <= set(order)

    def test_insufficient_stock_is_conflict(self, buyer, product):
        _place(buyer, product, 3)
        response = _place(buyer, product, 3)

        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["code"] == StatusCode.PRODUCT_STOCK_INSUFFICIENT
        assert body["data"]["kind"] == "InsufficientStock"
        assert body["data"]["retriable"] is False
        assert body["data"]["details"] == {"product_id": str(product.id), "available": 2, "requested": 3}
        assert ProductModel.objects.get(id=product.id).available_quantity == 2

    def test_zero_quantity_is_bad_request(self, buyer, product):
        response = _place(buyer, product, 0)

        assert response.status_code == 400
        assert response.json()["data"]["kind"] == "ValidationError"
        assert OrderModel.objects.count() == 0

    def test_malformed_body_is_bad_request(self, buyer):
        response = _client(buyer).post(ORDERS_URL, {"items": [{"quantity": "x"}]}, format="json")

        assert response.status_code == 400
        assert response.json()["code"] == StatusCode.VALIDATION_ERROR

    def test_unknown_product_is_not_found(self, buyer):
        response = _client(buyer).post(
            ORDERS_URL, {"items": [{"product_id": str(uuid.uuid4()), "quantity": 1}]}, format="json"
        )
        assert response.status_code == 404

    def test_storage_failure_is_service_unavailable(self, buyer, product):
        with patch(
            "orders.infrastructure.repositories.django_order_repository.DjangoOrderRepository.create",
            side_effect=StorageFailureException("保存订单", "connection reset"),
        ):
            response = _place(buyer, product, 1)

        assert response.status_code == 503
        assert response.json()["data"]["retriable"] is True
        assert ProductModel.objects.get(id=product.id).available_quantity == 5

    def test_requires_authentication(self, product):
        response = _place(None, product, 1)

        assert response.status_code == 401
        assert response.json()["code"] == StatusCode.UNAUTHORIZED


class TestOrderStatusEndpoint:
    @pytest.fixture
    def order_id(self, buyer, product):
        return _place(buyer, product, 3).json()["data"]["id"]

    def _patch(self, user, order_id, status):
        return _client(user).patch(f"{ORDERS_URL}{order_id}/status/", {"status": status}, format="json")

    def test_customer_is_forbidden(self, buyer, order_id):
        response = self._patch(buyer, order_id, "CANCELLED")

        assert response.status_code == 403
        assert response.json()["data"]["kind"] == "Forbidden"

    def test_pending_to_delivered_is_conflict(self, staff, order_id):
        response = self._patch(staff, order_id, "DELIVERED")

        assert response.status_code == 409
        assert response.json()["code"] == StatusCode.ORDER_STATUS_INVALID

    def test_cancel_releases_stock(self, staff, order_id, product):
        response = self._patch(staff, order_id, "CANCELLED")

        assert response.status_code == 200
        assert response.json()["code"] == StatusCode.UPDATED
        assert response.json()["data"]["status"] == "CANCELLED"
        assert ProductModel.objects.get(id=product.id).available_quantity == 5

    def test_unknown_status_is_bad_request(self, staff, order_id):
        assert self._patch(staff, order_id, "LOST").status_code == 400

    def test_unknown_order_is_not_found(self, staff):
        assert self._patch(staff, uuid.uuid4(), "CANCELLED").status_code == 404


class TestOrderQueryEndpoints:
    def test_owner_can_read_and_others_cannot(self, buyer, other_buyer, staff, product):
        order_id = _place(buyer, product, 1).json()["data"]["id"]
        url = f"{ORDERS_URL}{order_id}/"

        assert _client(buyer).get(url).status_code == 200
        assert _client(staff).get(url).status_code == 200
        assert _client(other_buyer).get(url).status_code == 404

    def test_list_is_scoped_and_paginated(self, buyer, other_buyer, staff, product):
        _place(buyer, product, 1)
        _place(buyer, product, 1)
        _place(other_buyer, product, 1)

        mine = _client(buyer).get(ORDERS_URL, {"page_size": 1}).json()["data"]
        assert mine["pagination"] == {"total": 2, "page": 1, "pageSize": 1, "hasMore": True}
        assert len(mine["items"]) == 1
        assert mine["items"][0]["userId"] == str(buyer.pk)

        everything = _client(staff).get(ORDERS_URL).json()["data"]
        assert everything["pagination"]["total"] == 3

    def test_list_rejects_unknown_status_filter(self, buyer):
        response = _client(buyer).get(ORDERS_URL, {"status": "LOST"})
        assert response.status_code == 400

    def test_escaped_domain_error_uses_envelope(self, buyer):
        with patch(
            "orders.application.order_service.OrderApplicationService.list_orders",
            side_effect=StorageFailureException("查询订单列表", "timeout"),
        ):
            response = _client(buyer).get(ORDERS_URL)

        assert response.status_code == 503
        body = response.json()
        assert body["code"] == StatusCode.DATABASE_ERROR
        assert body["data"]["kind"] == "StorageFailure"
