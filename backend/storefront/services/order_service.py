"""
Order Service
Checkout: reprice the requested items for the tenant and place the order

Client-sent prices are never trusted; every line is priced here with
PricingService before the order is written.
"""
import logging
from collections import OrderedDict
from typing import Optional

from storefront.core.auth import TokenUser
from storefront.domain.order import Order, OrderItem, CheckoutRequest, OrderStatus
from storefront.domain.tenant import Tenant
from storefront.repositories.order_repository import OrderRepository
from storefront.services.pricing_service import PricingService

logger = logging.getLogger(__name__)


class OrderService:
    def __init__(
        self,
        order_repository: Optional[OrderRepository] = None,
        pricing_service: Optional[PricingService] = None
    ):
        self.order_repository = order_repository or OrderRepository()
        self.pricing_service = pricing_service or PricingService()

    def place_order(self, user: TokenUser, tenant: Optional[Tenant], checkout: CheckoutRequest) -> Order:
        """
        Raises:
            ProductNotFoundError: an item references an unknown product
            InsufficientStockError: not enough stock for an item
        """
        # Same product twice in one checkout becomes one line
        quantities = OrderedDict()
        for item in checkout.items:
            quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity

        tenant_id = tenant.id if tenant else None
        resolutions = self.pricing_service.resolve_prices(quantities.items(), tenant_id)

        items = [
            OrderItem(
                product_id=r.product_id,
                quantity=r.quantity,
                price=r.price,
                base_price=r.base_price
            )
            for r in resolutions
        ]

        order = self.order_repository.create_order(
            user_id=user.id,
            distributor_id=tenant_id,
            items=items,
            shipping=checkout.shipping,
            payment_reference=checkout.payment_reference,
            status=OrderStatus.PENDING
        )

        logger.info(
            f"Order {order.id} placed by user {user.id} "
            f"(tenant={tenant_id}, items={len(items)}, total={order.total_price})"
        )
        return order
