from .tenancy import Store
from .inventory import Product, StockDiscrepancy
from .customers import Customer
from .promotions import DiscountRule
from .sales import Sale, SaleItem, SaleDiscount
from .documents import ReceiptSequence

__all__ = [
    'Store',
    'Product', 'StockDiscrepancy',
    'Customer',
    'DiscountRule',
    'Sale', 'SaleItem', 'SaleDiscount',
    'ReceiptSequence',
]
