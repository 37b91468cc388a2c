import uuid
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import DatabaseError
from django.db.models.query import QuerySet

from core.domain import (
    EntityNotFoundException,
    InsufficientStockException,
    StorageFailureException,
    ValidationException,
)
from core.infrastructure.transaction import DjangoTransactionManager, TransactionScope
from orders.domain.entities import OrderStatus, InvalidTransitionException
from orders.domain.services import OrderPlacementService, OrderStatusService
from orders.domain.value_objects import OrderLine
from orders.infrastructure.models.order_models import (
    Order as OrderModel,
    OrderItem as OrderItemModel,
    Product as ProductModel,
)
from orders.infrastructure.repositories.django_inventory_repository import DjangoInventoryRepository
from orders.infrastructure.repositories.django_order_repository import DjangoOrderRepository

pytestmark = pytest.mark.django_db


@pytest.fixture
def tm():
    return DjangoTransactionManager()


@pytest.fixture
def inventory():
    return DjangoInventoryRepository(lock_timeout_seconds=2, max_retries=3)


@pytest.fixture
def order_repository():
    return DjangoOrderRepository()


@pytest.fixture
def placement(inventory, order_repository, tm):
    return OrderPlacementService(inventory, order_repository, tm, currency="CNY")


@pytest.fixture
def status_service(inventory, order_repository, tm):
    return OrderStatusService(order_repository, inventory, tm, release_stock_on_cancel=True)


@pytest.fixture
def product():
    return ProductModel.objects.create(name="P", price_amount=Decimal("10.00"), available_quantity=5)


def _available(product):
    return ProductModel.objects.get(id=product.id).available_quantity


class TestDjangoInventoryRepository:
    def test_reserve_decrements_and_bumps_version(self, tm, inventory, product):
        with tm.start() as tx:
            reservation = inventory.reserve(tx, product.id, 3)

        refreshed = ProductModel.objects.get(id=product.id)
        assert reservation.unit_price.amount == Decimal("10.00")
        assert refreshed.available_quantity == 2
        assert refreshed.version == product.version + 1

    def test_insufficient_stock(self, tm, inventory, product):
        with pytest.raises(InsufficientStockException) as exc_info:
            with tm.start() as tx:
                inventory.reserve(tx, product.id, 6)

        assert exc_info.value.available == 5
        assert _available(product) == 5

    @pytest.mark.parametrize("product_id", [uuid.uuid4(), "not-a-uuid"])
    def test_unknown_product(self, tm, inventory, product_id):
        with pytest.raises(EntityNotFoundException):
            with tm.start() as tx:
                inventory.reserve(tx, product_id, 1)

    def test_cas_conflicts_exhaust_retries(self, tm, inventory, product):
        with patch('django.db.models.query.QuerySet.update', return_value=0):
            with pytest.raises(StorageFailureException) as exc_info:
                with tm.start() as tx:
                    inventory.reserve(tx, product.id, 1)

        assert exc_info.value.retriable is True
        assert _available(product) == 5

    def test_cas_conflict_is_retried_against_fresh_row(self, tm, inventory, product):
        real_update = QuerySet.update
        attempts = []

        def conflict_once(queryset, **kwargs):
            attempts.append(kwargs)
            if len(attempts) == 1:
                return 0
            return real_update(queryset, **kwargs)

        with patch.object(QuerySet, 'update', autospec=True, side_effect=conflict_once):
            with tm.start() as tx:
                reservation = inventory.reserve(tx, product.id, 3)

        refreshed = ProductModel.objects.get(id=product.id)
        assert len(attempts) == 2
        assert reservation.quantity == 3
        assert refreshed.available_quantity == 2
        assert refreshed.version == product.version + 1

    def test_release_saturates_and_ignores_bad_input(self, tm, inventory, product):
        with tm.start() as tx:
            inventory.release(tx, product.id, 3)
            inventory.release(tx, product.id, 0)
            inventory.release(tx, product.id, -2)
            inventory.release(tx, uuid.uuid4(), 1)

        assert _available(product) == 8

    def test_get_available(self, inventory, product):
        assert inventory.get_available(product.id) == 5
        assert inventory.get_available(uuid.uuid4()) is None
        assert inventory.get_available("bad") is None

    def test_scope_must_be_open(self, tm, inventory, product):
        with tm.start() as tx:
            pass
        with pytest.raises(StorageFailureException):
            inventory.reserve(tx, product.id, 1)


class TestDjangoPlacement:
    def test_scenario_reserve_then_shortfall(self, placement, order_repository, product):
        order = placement.place_order("1001", [OrderLine(product.id, 3)])

        stored = order_repository.get_by_id(order.id)
        assert str(stored.total_amount.amount) == "30.00"
        assert stored.status == OrderStatus.PENDING
        assert [(i.product_id, i.quantity) for i in stored.items] == [(product.id, 3)]
        assert _available(product) == 2

        with pytest.raises(InsufficientStockException) as exc_info:
            placement.place_order("1001", [OrderLine(product.id, 3)])
        assert exc_info.value.details()["available"] == 2
        assert _available(product) == 2
        assert OrderModel.objects.count() == 1

    def test_items_keep_request_order(self, placement, order_repository, product):
        other = ProductModel.objects.create(name="Q", price_amount=Decimal("1.25"), available_quantity=9)

        order = placement.place_order("1001", [OrderLine(other.id, 2), OrderLine(product.id, 1)])

        stored = order_repository.get_by_id(order.id)
        assert [i.product_id for i in stored.items] == [other.id, product.id]
        assert stored.total_amount.amount == Decimal("12.50")
        assert stored.check_invariants()

    def test_database_error_while_persisting_rolls_back(self, placement, product):
        with patch('django.db.models.query.QuerySet.bulk_create', side_effect=DatabaseError("disk full")):
            with pytest.raises(StorageFailureException):
                placement.place_order("1001", [OrderLine(product.id, 4)])

        assert _available(product) == 5
        assert OrderModel.objects.count() == 0
        assert OrderItemModel.objects.count() == 0

    def test_total_beyond_column_limit_is_rejected_before_saving(self, placement, order_repository):
        pricey = ProductModel.objects.create(
            name="P", price_amount=Decimal("600000000000.00"), available_quantity=5
        )

        with pytest.raises(ValidationException) as exc_info:
            placement.place_order("1001", [OrderLine(pricey.id, 2)])

        assert exc_info.value.retriable is False
        assert _available(pricey) == 5
        assert OrderModel.objects.count() == 0
        assert order_repository.list() == ([], 0)

    def test_total_at_column_limit_reads_back(self, placement, order_repository):
        pricey = ProductModel.objects.create(
            name="P", price_amount=Decimal("333333333333.33"), available_quantity=5
        )

        order = placement.place_order("1001", [OrderLine(pricey.id, 3)])

        stored = order_repository.get_by_id(order.id)
        assert stored.total_amount.amount == Decimal("999999999999.99")
        orders, total = order_repository.list()
        assert total == 1
        assert orders[0].total_amount.amount == Decimal("999999999999.99")

    def test_unit_price_is_a_snapshot(self, placement, order_repository, product):
        order = placement.place_order("1001", [OrderLine(product.id, 1)])
        ProductModel.objects.filter(id=product.id).update(price_amount=Decimal("99.00"))

        stored = order_repository.get_by_id(order.id)
        assert stored.items[0].unit_price.amount == Decimal("10.00")


class TestDjangoStatusChange:
    def test_cancel_releases_stock(self, placement, status_service, product):
        order = placement.place_order("1001", [OrderLine(product.id, 3)])

        updated = status_service.change_status(order.id, OrderStatus.CANCELLED)

        assert updated.status == OrderStatus.CANCELLED
        assert OrderModel.objects.get(id=order.id).status == OrderStatus.CANCELLED
        assert _available(product) == 5

    def test_invalid_transition_changes_nothing(self, placement, status_service, product):
        order = placement.place_order("1001", [OrderLine(product.id, 3)])

        with pytest.raises(InvalidTransitionException):
            status_service.change_status(order.id, OrderStatus.DELIVERED)

        assert OrderModel.objects.get(id=order.id).status == OrderStatus.PENDING
        assert _available(product) == 2

    def test_unknown_order(self, status_service):
        with pytest.raises(EntityNotFoundException):
            status_service.change_status(uuid.uuid4(), OrderStatus.CANCELLED)


class TestDjangoOrderQueries:
    def test_list_filters_and_counts(self, placement, order_repository, product):
        mine = placement.place_order("1001", [OrderLine(product.id, 1)])
        placement.place_order("1002", [OrderLine(product.id, 1)])

        orders, total = order_repository.list(user_id="1001")
        assert total == 1
        assert [o.id for o in orders] == [mine.id]

        orders, total = order_repository.list(status=OrderStatus.PENDING, limit=1)
        assert total == 2
        assert len(orders) == 1

    def test_get_by_id_handles_bad_ids(self, order_repository):
        assert order_repository.get_by_id(uuid.uuid4()) is None
        assert order_repository.get_by_id("bad") is None


class _MySQLScope(TransactionScope):
    using = "default"
    vendor = "mysql"


class TestMySQLLockTimeout:
    @pytest.fixture
    def cursor(self):
        with patch('orders.infrastructure.repositories.django_inventory_repository.connections') as connections:
            yield connections.__getitem__.return_value.cursor.return_value.__enter__.return_value

    def _statements(self, cursor):
        return [c.args[0] for c in cursor.execute.call_args_list]

    def test_session_timeout_is_restored_when_scope_closes(self, cursor):
        cursor.fetchone.return_value = (50,)
        scope = _MySQLScope()

        DjangoInventoryRepository(lock_timeout_seconds=2)._apply_lock_timeout(scope)
        assert self._statements(cursor) == [
            "SELECT @@SESSION.innodb_lock_wait_timeout",
            "SET SESSION innodb_lock_wait_timeout = 2",
        ]

        scope._close()
        assert self._statements(cursor)[-1] == "SET SESSION innodb_lock_wait_timeout = 50"

    def test_matching_session_timeout_is_left_alone(self, cursor):
        cursor.fetchone.return_value = (2,)
        scope = _MySQLScope()

        DjangoInventoryRepository(lock_timeout_seconds=2)._apply_lock_timeout(scope)
        scope._close()

        assert self._statements(cursor) == ["SELECT @@SESSION.innodb_lock_wait_timeout"]
