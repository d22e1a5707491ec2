"""
Domain Layer - Business Entities

This layer contains Pydantic models representing business entities.
These models enforce type safety and validation across the application,
and carry the business rules that need no database (voucher discounts,
debt/invoice status, delivery totals, translation key resolution).

Author: TM3
Date: 2025-10-17
"""
from app.domain.product import Product, Category, Brand
from app.domain.order import Order, OrderItem, OrderStatusHistory
from app.domain.voucher import Voucher
from app.domain.invoice import Invoice, InvoiceOrder
from app.domain.debt import Debt, DebtItem
from app.domain.delivery import DeliveryOrder, DeliveryItem
from app.domain.inventory import InventoryItem, InventoryHistory
from app.domain.notification import Notification, Recipient
from app.domain.translation import Translation
from app.domain.content import HomepageSettings, News, Activity, Advertisement
from app.domain.user import User

__all__ = [
    'Product', 'Category', 'Brand',
    'Order', 'OrderItem', 'OrderStatusHistory',
    'Voucher',
    'Invoice', 'InvoiceOrder',
    'Debt', 'DebtItem',
    'DeliveryOrder', 'DeliveryItem',
    'InventoryItem', 'InventoryHistory',
    'Notification', 'Recipient',
    'Translation',
    'HomepageSettings', 'News', 'Activity', 'Advertisement',
    'User',
]
