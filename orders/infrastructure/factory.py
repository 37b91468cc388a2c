"""
订单基础设施层工厂。
负责创建和管理基础设施层对象，包括仓储、授权关口和服务实例。
"""
from typing import Optional

from core.infrastructure.transaction import (
    TransactionManager,
    DjangoTransactionManager,
    InMemoryTransactionManager,
)

from orders.application.order_service import OrderApplicationService
from orders.domain.repositories import AuthorizationGate, InventoryRepository, OrderRepository
from orders.domain.services import OrderPlacementService, OrderStatusService
from orders.infrastructure.repositories.django_inventory_repository import DjangoInventoryRepository
from orders.infrastructure.repositories.django_order_repository import DjangoOrderRepository
from orders.infrastructure.repositories.memory_repositories import (
    InMemoryInventoryRepository,
    InMemoryOrderRepository,
)
from orders.infrastructure.services.authorization_gate import RoleAuthorizationGate


class OrderInfrastructureFactory:
    """
    订单基础设施层工厂类。
    按后端类型创建仓储，并组装领域服务和应用服务。
    """

    DJANGO = "django"
    MEMORY = "memory"

    def __init__(self, backend: str = DJANGO, transaction_manager: Optional[TransactionManager] = None):
        """
        初始化订单基础设施层工厂。

        Args:
            backend: 存储后端，django或memory
            transaction_manager: 事务管理器，默认按后端创建
        """
        if backend not in (self.DJANGO, self.MEMORY):
            raise ValueError(f"不支持的存储后端: {backend}")
        self.backend = backend
        if transaction_manager is None:
            transaction_manager = (
                DjangoTransactionManager() if backend == self.DJANGO else InMemoryTransactionManager()
            )
        self.transaction_manager = transaction_manager

        # 存储已创建的实例
        self._inventory_repository = None
        self._order_repository = None
        self._authorization_gate = None

    def create_inventory_repository(self) -> InventoryRepository:
        """
        创建库存台账。

        Returns:
            库存台账实例
        """
        if not self._inventory_repository:
            if self.backend == self.DJANGO:
                self._inventory_repository = DjangoInventoryRepository()
            else:
                self._inventory_repository = InMemoryInventoryRepository()

        return self._inventory_repository

    def create_order_repository(self) -> OrderRepository:
        """
        创建订单仓储。

        Returns:
            订单仓储实例
        """
        if not self._order_repository:
            if self.backend == self.DJANGO:
                self._order_repository = DjangoOrderRepository()
            else:
                self._order_repository = InMemoryOrderRepository()

        return self._order_repository

    def create_authorization_gate(self) -> AuthorizationGate:
        if not self._authorization_gate:
            self._authorization_gate = RoleAuthorizationGate()

        return self._authorization_gate

    def create_placement_service(self) -> OrderPlacementService:
        return OrderPlacementService(
            inventory_repository=self.create_inventory_repository(),
            order_repository=self.create_order_repository(),
            transaction_manager=self.transaction_manager,
        )

    def create_status_service(self) -> OrderStatusService:
        return OrderStatusService(
            order_repository=self.create_order_repository(),
            inventory_repository=self.create_inventory_repository(),
            transaction_manager=self.transaction_manager,
        )

    def create_application_service(self) -> OrderApplicationService:
        """
        组装订单应用服务。

        Returns:
            订单应用服务实例
        """
        return OrderApplicationService(
            placement_service=self.create_placement_service(),
            status_service=self.create_status_service(),
            order_repository=self.create_order_repository(),
            authorization_gate=self.create_authorization_gate(),
        )
