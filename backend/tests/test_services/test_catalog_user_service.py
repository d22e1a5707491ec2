"""
Unit tests for CatalogService, UserService and NotificationService

Author: TM3
Date: 2025-10-17
"""
import pytest
from decimal import Decimal
from unittest.mock import MagicMock

from app.core.auth import TokenUser, decode_access_token, hash_password
from app.core.cache import MemoryCache
from app.core.exceptions import (
    AuthenticationError, ConflictError, NotFoundError, PermissionDeniedError, ValidationError,
)
from app.domain.order import Order, OrderItem
from app.domain.product import Brand, Category, CategoryCreate, Product, ProductCreate, StockUpdate
from app.domain.user import LoginRequest, PasswordChange, User, UserRegister
from app.services.catalog_service import CatalogService
from app.services.notification_service import NotificationService, order_display_number
from app.services.user_service import UserService


def make_product(**overrides) -> Product:
    data = {
        'id': 10, 'name': 'Vải sấy', 'slug': 'vai-say', 'sku': 'VS-1',
        'price': Decimal('120000'), 'quantity': 5, 'status': 'active',
    }
    data.update(overrides)
    return Product(**data)


class TestCatalogService:
    """Catalog rules and caching"""

    def setup_method(self):
        self.products = MagicMock()
        self.categories = MagicMock()
        self.brands = MagicMock()
        self.cache = MemoryCache()
        self.service = CatalogService(
            products=self.products, categories=self.categories, brands=self.brands, cache=self.cache,
        )

    def test_public_listing_forces_active_visible(self):
        self.products.find_all.return_value = ([], 0)
        self.service.list_products({'status': 'draft', 'search': 'vai'}, is_staff=False,
                                   sort='newest', limit=20, offset=0)
        kwargs = self.products.find_all.call_args.kwargs
        assert kwargs['status'] == 'active'
        assert kwargs['is_visible'] is True
        assert kwargs['search'] == 'vai'

    def test_staff_listing_keeps_filters(self):
        self.products.find_all.return_value = ([], 0)
        self.service.list_products({'status': 'draft'}, is_staff=True, sort='newest', limit=20, offset=0)
        assert self.products.find_all.call_args.kwargs['status'] == 'draft'

    def test_hidden_product_is_not_found_for_public(self):
        self.products.find_by_id.return_value = make_product(is_visible=False)
        with pytest.raises(NotFoundError):
            self.service.get_product(10)
        assert self.service.get_product(10, is_staff=True).id == 10

    def test_create_product_slug_and_publish_date(self):
        self.categories.find_by_id.return_value = Category(id=1, name='Sấy', slug='say')
        self.products.sku_exists.return_value = False
        self.products.slug_exists.side_effect = lambda slug: slug == 'vai-thieu'
        self.products.create.side_effect = lambda data: make_product(slug=data['slug'])

        product = self.service.create_product(ProductCreate(
            name='Vải Thiều', sku='vt-1', price=Decimal('100000'), category_id=1, status='active',
        ))

        data = self.products.create.call_args[0][0]
        assert product.slug == 'vai-thieu-1'
        assert data['sku'] == 'VT-1'
        assert data['published_at'] is not None

    def test_create_product_unknown_brand(self):
        self.brands.find_by_id.return_value = None
        with pytest.raises(NotFoundError):
            self.service.create_product(ProductCreate(name='A', sku='A', price=Decimal('1'), brand_id=9))

    def test_create_product_duplicate_sku(self):
        self.products.sku_exists.return_value = True
        with pytest.raises(ConflictError):
            self.service.create_product(ProductCreate(name='A', sku='A', price=Decimal('1')))

    def test_subtract_below_zero(self):
        self.products.find_by_id.return_value = make_product(quantity=2)
        with pytest.raises(ValidationError, match='Insufficient stock'):
            self.service.update_stock(10, StockUpdate(quantity=3, operation='subtract'))

    def test_add_stock_is_relative(self):
        self.products.find_by_id.return_value = make_product(quantity=2)
        self.products.change_quantity.return_value = make_product(quantity=5)

        product = self.service.update_stock(10, StockUpdate(quantity=3, operation='add'))

        self.products.change_quantity.assert_called_once_with(10, 3)
        self.products.set_quantity.assert_not_called()
        assert product.quantity == 5

    def test_subtract_passes_negative_delta(self):
        self.products.find_by_id.return_value = make_product(quantity=5)
        self.products.change_quantity.return_value = make_product(quantity=2)
        self.service.update_stock(10, StockUpdate(quantity=3, operation='subtract'))
        self.products.change_quantity.assert_called_once_with(10, -3)

    def test_set_stock_is_absolute(self):
        self.products.find_by_id.return_value = make_product(quantity=5)
        self.products.set_quantity.return_value = make_product(quantity=8)
        self.service.update_stock(10, StockUpdate(quantity=8, operation='set'))
        self.products.set_quantity.assert_called_once_with(10, 8)

    def test_product_deleted_during_stock_change(self):
        self.products.find_by_id.return_value = make_product(quantity=5)
        self.products.change_quantity.return_value = None
        with pytest.raises(NotFoundError):
            self.service.update_stock(10, StockUpdate(quantity=1, operation='add'))

    def test_taxonomy_list_is_cached_until_write(self):
        self.categories.find_all.return_value = [Category(id=1, name='Sấy', slug='say')]
        self.categories.slug_exists.return_value = False
        self.categories.create.return_value = Category(id=2, name='Mứt', slug='mut')

        self.service.list_taxonomy('category')
        self.service.list_taxonomy('category')
        assert self.categories.find_all.call_count == 1

        self.service.create_category(CategoryCreate(name='Mứt'))
        self.service.list_taxonomy('category')
        assert self.categories.find_all.call_count == 2

    def test_cannot_delete_brand_with_products(self):
        self.brands.find_by_id.return_value = Brand(id=1, name='LALA', slug='lala')
        self.brands.count_products.return_value = 3
        with pytest.raises(ValidationError, match='with products'):
            self.service.delete_taxonomy('brand', 1)
        self.brands.delete.assert_not_called()

    def test_missing_slug(self):
        self.brands.find_by_slug.return_value = None
        with pytest.raises(NotFoundError):
            self.service.get_taxonomy_by_slug('brand', 'nope')


class TestUserService:
    """Registration, login and account rules"""

    def setup_method(self):
        self.repo = MagicMock()
        self.service = UserService(repo=self.repo)

    def test_register_returns_token(self):
        self.repo.email_exists.return_value = False
        self.repo.create.return_value = User(id=3, email='new@shop.vn', role='customer')

        result = self.service.register(UserRegister(email='NEW@shop.vn', password='secret123'))

        assert self.repo.create.call_args.kwargs['email'] == 'new@shop.vn'
        assert self.repo.create.call_args.kwargs['role'] == 'customer'
        assert decode_access_token(result['token'])['id'] == 3

    def test_register_duplicate(self):
        self.repo.email_exists.return_value = True
        with pytest.raises(ConflictError):
            self.service.register(UserRegister(email='a@shop.vn', password='secret123'))

    def test_login_wrong_password(self):
        self.repo.find_credentials.return_value = {
            'id': 3, 'email': 'a@shop.vn', 'password_hash': hash_password('secret123'),
        }
        with pytest.raises(AuthenticationError):
            self.service.login(LoginRequest(email='a@shop.vn', password='wrong'))

    def test_login_disabled_account(self):
        self.repo.find_credentials.return_value = {
            'id': 3, 'email': 'a@shop.vn', 'is_active': False, 'password_hash': hash_password('secret123'),
        }
        with pytest.raises(PermissionDeniedError):
            self.service.login(LoginRequest(email='a@shop.vn', password='secret123'))

    def test_login_success(self):
        self.repo.find_credentials.return_value = {
            'id': 3, 'email': 'a@shop.vn', 'role': 'employee', 'password_hash': hash_password('secret123'),
        }
        result = self.service.login(LoginRequest(email='a@shop.vn', password='secret123'))
        assert result['user'].role == 'employee'
        self.repo.touch_last_login.assert_called_once_with(3)

    def test_change_password_checks_current(self):
        self.repo.find_credentials_by_id.return_value = {'id': 3, 'password_hash': hash_password('secret123')}
        with pytest.raises(ValidationError, match='incorrect'):
            self.service.change_password(3, PasswordChange(current_password='nope', new_password='another1'))

    def test_cannot_delete_self(self):
        with pytest.raises(ValidationError):
            self.service.delete_user(1, current_user_id=1)


class TestNotificationService:

    def setup_method(self):
        self.repo = MagicMock()
        self.repo.create.side_effect = lambda notification: notification
        self.service = NotificationService(repo=self.repo)

    def _order(self, **overrides):
        data = {
            'id': 12, 'order_number': 'ORD-251017-ABC123', 'user_id': 7, 'total': Decimal('1250000'),
            'items': [OrderItem(product_name='A', quantity=1, unit_price=Decimal('1250000'), total=Decimal('1250000'))],
        }
        data.update(overrides)
        return Order(**data)

    def test_order_created_message(self):
        notification = self.service.create_order_notification(self._order())
        assert notification.type == 'order_created'
        assert notification.message == 'Đơn hàng ORD-251017-ABC123 - 1 sản phẩm - 1.250.000 ₫'
        assert notification.recipients[0].all_employees is True
        assert notification.data['is_guest'] is False

    def test_status_event_notifies_owner(self):
        notification = self.service.create_order_event(self._order(status='shipped'), 'order_shipped', 'GHN')
        assert notification.title == 'Đơn hàng đang giao'
        assert notification.message.endswith('shipped - GHN')
        assert any(r.user_id == 7 for r in notification.recipients)

    def test_display_number_fallback(self):
        assert order_display_number(None, 'abcdef123456') == 'EF123456'

    def test_mark_read_missing(self):
        self.repo.exists.return_value = False
        with pytest.raises(NotFoundError):
            self.service.mark_read(5, TokenUser(id=1, email='a@b.vn'))

    def test_customer_deletes_only_own_notifications(self):
        self.repo.delete_visible.return_value = False
        customer = TokenUser(id=7, email='khach@shop.vn', role='customer')

        with pytest.raises(NotFoundError):
            self.service.delete(3, customer)

        self.repo.delete_visible.assert_called_once_with(3, 7, 'customer', False)
        self.repo.delete.assert_not_called()

    def test_admin_deletes_any_notification(self):
        self.repo.delete.return_value = True
        self.service.delete(3, TokenUser(id=1, email='admin@shop.vn', role='admin'))
        self.repo.delete.assert_called_once_with(3)
        self.repo.delete_visible.assert_not_called()
