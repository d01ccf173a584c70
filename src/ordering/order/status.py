"""Order status updates — command and handler.

Back-office transitions along the fulfilment lifecycle. The aggregate rejects
any move the transition graph does not allow.
"""

from protean import handle
from protean.fields import Identifier, String

from ordering.domain import ordering
from ordering.order.order import Order, OrderStatus
from ordering.order.repository import OrderRepository


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)


@ordering.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        order = OrderRepository().update_status(command.order_id, command.status)
        return order.status
