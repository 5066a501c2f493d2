from app.models.inventory import Customer, Product, StockBatch, Supplier
from app.models.invoices import PurchaseInvoice, PurchaseInvoiceItem, SalesInvoice, SalesInvoiceItem
from app.models.payments import CustomerPayment, SupplierPayment

__all__ = [
    "Customer",
    "CustomerPayment",
    "Product",
    "PurchaseInvoice",
    "PurchaseInvoiceItem",
    "SalesInvoice",
    "SalesInvoiceItem",
    "StockBatch",
    "Supplier",
    "SupplierPayment",
]
