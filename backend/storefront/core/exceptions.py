"""
Domain exceptions

Services and repositories raise these; API routes translate them into
HTTP responses (404 / 400 / 409).
"""


class StorefrontError(Exception):
    """Base class for all storefront domain errors"""


class NotFoundError(StorefrontError):
    """A requested entity does not exist"""

    entity = "Resource"

    def __init__(self, identifier=None, message=None):
        self.identifier = identifier
        if message is None:
            message = f"{self.entity} {identifier} not found" if identifier is not None else f"{self.entity} not found"
        super().__init__(message)


class ProductNotFoundError(NotFoundError):
    entity = "Product"


class OrderNotFoundError(NotFoundError):
    entity = "Order"


class QuoteNotFoundError(NotFoundError):
    entity = "Quote"


class DistributorNotFoundError(NotFoundError):
    entity = "Distributor"


class InsufficientStockError(StorefrontError):
    """Checkout asked for more units than are in stock"""

    def __init__(self, product_id, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Product {product_id} out of stock (requested {requested}, available {available})"
        )


class InvalidStateError(StorefrontError):
    """Operation not allowed in the entity's current state"""
