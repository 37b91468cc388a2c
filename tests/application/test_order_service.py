import uuid
from decimal import Decimal
from unittest.mock import patch

import pytest

from core.domain import ErrorKind, ValidationException, StorageFailureException
from orders.application import (
    PlaceOrderCommand,
    ChangeOrderStatusCommand,
    GetOrderQuery,
    ListOrdersQuery,
    OrderResult,
)
from orders.domain.entities import OrderStatus
from orders.domain.value_objects import OrderLine


def _place(service, principal, product_id, quantity):
    return service.place_order(PlaceOrderCommand(principal, [OrderLine(str(product_id), quantity)]))


class TestPlaceOrder:
    def test_success_result(self, memory_app_service, customer, stocked_product):
        result = _place(memory_app_service, customer, stocked_product, 3)

        assert result.ok
        assert result.error is None
        assert result.order.user_id == customer.id
        assert result.order.status == OrderStatus.PENDING
        assert result.order.total_amount == Decimal("30.00")
        assert result.order.currency == "CNY"
        item = result.order.items[0]
        assert item.product_id == str(stocked_product)
        assert (item.quantity, item.unit_price, item.subtotal) == (3, Decimal("10.00"), Decimal("30.00"))

    def test_insufficient_stock_result(self, memory_app_service, memory_inventory, customer, stocked_product):
        _place(memory_app_service, customer, stocked_product, 3)
        result = _place(memory_app_service, customer, stocked_product, 3)

        assert not result.ok
        assert result.order is None
        assert result.error.kind == ErrorKind.INSUFFICIENT_STOCK
        assert result.error.retriable is False
        assert result.error.details == {"product_id": str(stocked_product), "available": 2, "requested": 3}
        assert memory_inventory.get_available(stocked_product) == 2

    def test_validation_result(self, memory_app_service, customer, stocked_product):
        result = _place(memory_app_service, customer, stocked_product, 0)

        assert result.is_error(ErrorKind.VALIDATION_ERROR)
        assert result.error.details == {"field": "items[0].quantity"}

    def test_unknown_product_result(self, memory_app_service, customer):
        result = _place(memory_app_service, customer, uuid.uuid4(), 1)
        assert result.is_error(ErrorKind.NOT_FOUND)

    def test_storage_failure_is_retriable(self, memory_factory, memory_app_service, customer, stocked_product):
        repository = memory_factory.create_order_repository()
        with patch.object(repository, 'create', side_effect=StorageFailureException("保存订单", "timeout")):
            result = _place(memory_app_service, customer, stocked_product, 1)

        assert result.is_error(ErrorKind.STORAGE_FAILURE)
        assert result.error.retriable is True
        assert memory_factory.create_inventory_repository().get_available(stocked_product) == 5

    def test_unexpected_errors_propagate(self, memory_factory, memory_app_service, customer, stocked_product):
        repository = memory_factory.create_order_repository()
        with patch.object(repository, 'create', side_effect=RuntimeError("bug")):
            with pytest.raises(RuntimeError):
                _place(memory_app_service, customer, stocked_product, 1)
        assert memory_factory.create_inventory_repository().get_available(stocked_product) == 5


class TestChangeOrderStatus:
    @pytest.fixture
    def order_id(self, memory_app_service, customer, stocked_product):
        return _place(memory_app_service, customer, stocked_product, 3).order.id

    def test_customer_is_forbidden(self, memory_app_service, customer, order_id):
        result = memory_app_service.change_order_status(
            ChangeOrderStatusCommand(customer, order_id, OrderStatus.CANCELLED)
        )

        assert result.is_error(ErrorKind.FORBIDDEN)
        order = memory_app_service.get_order(GetOrderQuery(customer, order_id)).order
        assert order.status == OrderStatus.PENDING

    def test_pending_to_delivered_is_invalid(self, memory_app_service, admin, order_id):
        result = memory_app_service.change_order_status(
            ChangeOrderStatusCommand(admin, order_id, OrderStatus.DELIVERED)
        )

        assert result.is_error(ErrorKind.INVALID_TRANSITION)
        assert result.error.details == {"current": "PENDING", "requested": "DELIVERED"}

    def test_pending_to_cancelled_releases_stock(self, memory_app_service, memory_inventory, admin,
                                                 order_id, stocked_product):
        assert memory_inventory.get_available(stocked_product) == 2

        result = memory_app_service.change_order_status(
            ChangeOrderStatusCommand(admin, order_id, OrderStatus.CANCELLED)
        )

        assert result.ok
        assert result.order.status == OrderStatus.CANCELLED
        assert memory_inventory.get_available(stocked_product) == 5

    def test_cancelled_is_terminal(self, memory_app_service, admin, order_id):
        memory_app_service.change_order_status(ChangeOrderStatusCommand(admin, order_id, OrderStatus.CANCELLED))
        result = memory_app_service.change_order_status(
            ChangeOrderStatusCommand(admin, order_id, OrderStatus.PROCESSING)
        )
        assert result.is_error(ErrorKind.INVALID_TRANSITION)

    def test_happy_path_to_delivered(self, memory_app_service, memory_inventory, admin, order_id, stocked_product):
        for status in (OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED):
            result = memory_app_service.change_order_status(ChangeOrderStatusCommand(admin, order_id, status))
            assert result.ok
            assert result.order.status == status
        assert memory_inventory.get_available(stocked_product) == 2

    def test_unknown_status_is_validation_error(self, memory_app_service, admin, order_id):
        result = memory_app_service.change_order_status(ChangeOrderStatusCommand(admin, order_id, "LOST"))
        assert result.is_error(ErrorKind.VALIDATION_ERROR)

    def test_unknown_order(self, memory_app_service, admin):
        result = memory_app_service.change_order_status(
            ChangeOrderStatusCommand(admin, uuid.uuid4(), OrderStatus.CANCELLED)
        )
        assert result.is_error(ErrorKind.NOT_FOUND)


class TestQueries:
    def test_owner_and_admin_can_view(self, memory_app_service, customer, admin, stocked_product):
        order_id = _place(memory_app_service, customer, stocked_product, 1).order.id

        assert memory_app_service.get_order(GetOrderQuery(customer, order_id)).ok
        assert memory_app_service.get_order(GetOrderQuery(admin, order_id)).ok

    def test_other_customer_sees_not_found(self, memory_app_service, customer, other_customer, stocked_product):
        order_id = _place(memory_app_service, customer, stocked_product, 1).order.id

        result = memory_app_service.get_order(GetOrderQuery(other_customer, order_id))
        assert result.is_error(ErrorKind.NOT_FOUND)

    def test_list_scopes_by_role(self, memory_app_service, customer, other_customer, admin, stocked_product):
        first = _place(memory_app_service, customer, stocked_product, 1).order
        second = _place(memory_app_service, other_customer, stocked_product, 1).order

        mine = memory_app_service.list_orders(ListOrdersQuery(customer))
        everything = memory_app_service.list_orders(ListOrdersQuery(admin))

        assert [o.id for o in mine.items] == [first.id]
        assert mine.total == 1
        assert {o.id for o in everything.items} == {first.id, second.id}
        assert everything.total == 2

    def test_list_is_newest_first_and_paginated(self, memory_app_service, customer, stocked_product):
        ids = [_place(memory_app_service, customer, stocked_product, 1).order.id for _ in range(3)]

        page = memory_app_service.list_orders(ListOrdersQuery(customer, page=1, page_size=2))

        assert page.total == 3
        assert [o.id for o in page.items] == [ids[2], ids[1]]

    def test_list_filters_by_status(self, memory_app_service, customer, admin, stocked_product):
        order_id = _place(memory_app_service, customer, stocked_product, 1).order.id
        _place(memory_app_service, customer, stocked_product, 1)
        memory_app_service.change_order_status(ChangeOrderStatusCommand(admin, order_id, OrderStatus.CANCELLED))

        result = memory_app_service.list_orders(ListOrdersQuery(customer, status=OrderStatus.CANCELLED))
        assert [o.id for o in result.items] == [order_id]

    @pytest.mark.parametrize("kwargs", [{"page": 0}, {"page_size": 0}, {"status": "LOST"}])
    def test_list_rejects_bad_parameters(self, memory_app_service, customer, kwargs):
        with pytest.raises(ValidationException):
            memory_app_service.list_orders(ListOrdersQuery(customer, **kwargs))


class TestOrderResult:
    def test_requires_exactly_one_payload(self):
        with pytest.raises(ValueError):
            OrderResult()
