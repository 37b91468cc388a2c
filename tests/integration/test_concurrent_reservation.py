import threading
from decimal import Decimal

import pytest
from django.db import connection, connections

from core.domain import InsufficientStockException
from core.infrastructure.transaction import DjangoTransactionManager
from orders.domain.services import OrderPlacementService
from orders.domain.value_objects import OrderLine
from orders.infrastructure.models.order_models import Order as OrderModel, Product as ProductModel
from orders.infrastructure.repositories.django_inventory_repository import DjangoInventoryRepository
from orders.infrastructure.repositories.django_order_repository import DjangoOrderRepository


@pytest.mark.django_db(transaction=True)
def test_full_stock_orders_race_on_row_lock():
    if connection.vendor == 'sqlite':
        pytest.skip("SQLite不支持SELECT ... FOR UPDATE行锁，设置TEST_DB_ENGINE后运行")

    product = ProductModel.objects.create(name="P", price_amount=Decimal("10.00"), available_quantity=5)
    service = OrderPlacementService(
        DjangoInventoryRepository(lock_timeout_seconds=5),
        DjangoOrderRepository(),
        DjangoTransactionManager(),
        currency="CNY",
    )
    barrier = threading.Barrier(2)
    outcomes = []
    lock = threading.Lock()

    def place(user_id):
        barrier.wait()
        try:
            service.place_order(user_id, [OrderLine(product.id, 5)])
            result = "ok"
        except InsufficientStockException:
            result = "insufficient"
        finally:
            connections.close_all()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=place, args=(str(n),)) for n in (1, 2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert sorted(outcomes) == ["insufficient", "ok"]
    assert ProductModel.objects.get(id=product.id).available_quantity == 0
    assert OrderModel.objects.count() == 1
