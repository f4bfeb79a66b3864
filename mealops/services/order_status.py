from mealops.core.errors import InvalidTransition, NotFoundError
from mealops.models.order import Order, OrderStatus
from mealops.repositories.order_repository import OrderRepository

# Прямой порядок статусов кухни/доставки
STATUS_SEQUENCE = [
    OrderStatus.pending,
    OrderStatus.preparing,
    OrderStatus.ready,
    OrderStatus.delivered,
]


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    """Только вперёд; отмена из любого не отменённого состояния."""
    if current == OrderStatus.cancelled:
        return False
    if new == OrderStatus.cancelled:
        return True
    return STATUS_SEQUENCE.index(new) > STATUS_SEQUENCE.index(current)


class OrderStatusService:
    def __init__(self, orders: OrderRepository):
        self.orders = orders

    async def change_status(self, order_id: int, new_status: OrderStatus) -> Order:
        order = await self.orders.get_by_id(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")

        if not can_transition(order.status, new_status):
            raise InvalidTransition(
                f"Cannot change order status from '{order.status.value}' to '{new_status.value}'"
            )

        return await self.orders.update_status(order, new_status)
