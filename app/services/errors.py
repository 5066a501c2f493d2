class LedgerError(Exception):
    """Base class for every failure the core reports to its callers."""

    kind = "ledger_error"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(LedgerError):
    kind = "validation_error"


class NotFound(LedgerError):
    kind = "not_found"

    def __init__(self, entity: str, identifier: object) -> None:
        super().__init__(f"{entity} {identifier} not found")
        self.entity = entity
        self.identifier = identifier


class InsufficientStock(LedgerError):
    kind = "insufficient_stock"

    def __init__(self, product_id: int, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient stock for product {product_id}: requested {requested}, available {available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class TransactionFailed(LedgerError):
    kind = "transaction_failed"
