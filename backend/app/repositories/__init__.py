"""
Repository Layer - Data Access

This layer handles all database queries and returns domain models.
Repositories abstract away SQL details from business logic.

Author: TM3
Date: 2025-10-17
"""
from app.repositories.user_repository import UserRepository
from app.repositories.catalog_repository import CategoryRepository, BrandRepository
from app.repositories.product_repository import ProductRepository
from app.repositories.order_repository import OrderRepository
from app.repositories.voucher_repository import VoucherRepository
from app.repositories.invoice_repository import InvoiceRepository
from app.repositories.debt_repository import DebtRepository
from app.repositories.delivery_repository import DeliveryRepository
from app.repositories.inventory_repository import InventoryRepository
from app.repositories.notification_repository import NotificationRepository
from app.repositories.translation_repository import TranslationRepository
from app.repositories.content_repository import (
    HomepageRepository,
    NewsRepository,
    ActivityRepository,
    AdvertisementRepository,
)

__all__ = [
    'UserRepository',
    'CategoryRepository',
    'BrandRepository',
    'ProductRepository',
    'OrderRepository',
    'VoucherRepository',
    'InvoiceRepository',
    'DebtRepository',
    'DeliveryRepository',
    'InventoryRepository',
    'NotificationRepository',
    'TranslationRepository',
    'HomepageRepository',
    'NewsRepository',
    'ActivityRepository',
    'AdvertisementRepository',
]
