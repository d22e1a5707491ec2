"""
Modelos de base de datos

Declaración del esquema PostgreSQL. Las consultas se hacen con SQL raw en
app.repositories; estos modelos solo definen tablas para init_db().
"""
from .user import User
from .catalog import Category, Brand, Product
from .order import Order, OrderItem, OrderStatusHistory
from .voucher import Voucher, VoucherUserUsage
from .billing import Invoice, InvoiceOrder, InvoiceHistory, Debt, DebtItem, DebtHistory
from .delivery import DeliveryOrder, DeliveryOrderItem
from .inventory import InventoryItem, InventoryHistory
from .notification import Notification, NotificationRead
from .translation import Translation
from .content import HomepageSettings, News, Activity, Advertisement

__all__ = [
    "User",
    "Category",
    "Brand",
    "Product",
    "Order",
    "OrderItem",
    "OrderStatusHistory",
    "Voucher",
    "VoucherUserUsage",
    "Invoice",
    "InvoiceOrder",
    "InvoiceHistory",
    "Debt",
    "DebtItem",
    "DebtHistory",
    "DeliveryOrder",
    "DeliveryOrderItem",
    "InventoryItem",
    "InventoryHistory",
    "Notification",
    "NotificationRead",
    "Translation",
    "HomepageSettings",
    "News",
    "Activity",
    "Advertisement",
]
