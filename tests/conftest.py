import uuid
from decimal import Decimal

import pytest

from core.domain.events import DomainEvents
from orders.domain.value_objects import Principal, Role


@pytest.fixture(autouse=True)
def _reset_event_handlers():
    yield
    DomainEvents.clear_handlers()


@pytest.fixture
def customer():
    return Principal("1001", Role.CUSTOMER)


@pytest.fixture
def other_customer():
    return Principal("1002", Role.CUSTOMER)


@pytest.fixture
def admin():
    return Principal("1", Role.ADMIN)


@pytest.fixture
def memory_factory():
    from orders.infrastructure.factory import OrderInfrastructureFactory

    return OrderInfrastructureFactory(backend=OrderInfrastructureFactory.MEMORY)


@pytest.fixture
def memory_inventory(memory_factory):
    return memory_factory.create_inventory_repository()


@pytest.fixture
def memory_orders(memory_factory):
    return memory_factory.create_order_repository()


@pytest.fixture
def memory_app_service(memory_factory):
    return memory_factory.create_application_service()


@pytest.fixture
def stocked_product(memory_inventory):
    """单价10.00、库存5的商品"""
    product_id = uuid.uuid4()
    memory_inventory.add_product(product_id, Decimal("10.00"), 5, name="P")
    return product_id
