"""
Unit tests for VoucherService and OrderService

Author: TM3
Date: 2025-10-17
"""
import pytest
from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock

from app.core.auth import TokenUser
from app.core.clock import utcnow
from app.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from app.domain.order import Order, OrderCreate, OrderItemInput, OrderStatusUpdate
from app.domain.product import Product
from app.domain.voucher import Voucher, VoucherCreate, VoucherUpdate
from app.services.order_service import OrderService
from app.services.voucher_service import VoucherService

CUSTOMER = TokenUser(id=7, email='customer@shop.vn', role='customer')
STAFF = TokenUser(id=2, email='staff@shop.vn', role='employee')


def make_voucher(**overrides) -> Voucher:
    now = utcnow()
    data = {
        'id': 1,
        'code': 'SALE10',
        'name': 'Sale',
        'discount_type': 'percentage',
        'discount_value': Decimal('10'),
        'min_order_value': Decimal('100000'),
        'start_date': now - timedelta(days=1),
        'end_date': now + timedelta(days=1),
        'status': 'active',
    }
    data.update(overrides)
    return Voucher(**data)


class TestVoucherPreview:
    """Eligibility checks performed before an order is placed"""

    def test_preview_returns_discount(self):
        # Arrange
        repo = MagicMock()
        repo.find_by_code.return_value = make_voucher()
        service = VoucherService(repo=repo)

        # Act
        result = service.preview(' sale10 ', Decimal('200000'))

        # Assert
        repo.find_by_code.assert_called_once_with('SALE10')
        assert result['discount'] == Decimal('20000')
        assert result['final_amount'] == Decimal('180000')
        assert result['runtime_status'] == 'active'

    def test_missing_code(self):
        with pytest.raises(ValidationError, match='code is required'):
            VoucherService(repo=MagicMock()).preview('', Decimal('1000'))

    def test_non_positive_subtotal(self):
        with pytest.raises(ValidationError):
            VoucherService(repo=MagicMock()).preview('SALE10', 0)

    def test_unknown_code(self):
        repo = MagicMock()
        repo.find_by_code.return_value = None
        with pytest.raises(NotFoundError):
            VoucherService(repo=repo).preview('NOPE', Decimal('1000'))

    def test_expired_voucher(self):
        now = utcnow()
        repo = MagicMock()
        repo.find_by_code.return_value = make_voucher(
            start_date=now - timedelta(days=10), end_date=now - timedelta(days=1),
        )
        with pytest.raises(ValidationError, match='expired'):
            VoucherService(repo=repo).preview('SALE10', Decimal('200000'))

    def test_below_minimum_order(self):
        repo = MagicMock()
        repo.find_by_code.return_value = make_voucher()
        with pytest.raises(ValidationError, match='at least 100,000'):
            VoucherService(repo=repo).preview('SALE10', Decimal('50000'))

    def test_per_user_limit(self):
        repo = MagicMock()
        repo.find_by_code.return_value = make_voucher(per_user_limit=1)
        repo.get_user_usage_count.return_value = 1
        with pytest.raises(ValidationError, match='usage limit'):
            VoucherService(repo=repo).preview('SALE10', Decimal('200000'), user_id=7)
        repo.get_user_usage_count.assert_called_once_with(1, 7)


class TestVoucherAdmin:

    def test_create_rejects_duplicate_code(self):
        repo = MagicMock()
        repo.code_exists.return_value = True
        payload = VoucherCreate(
            code='sale10', name='Sale', discount_type='fixed', discount_value=Decimal('10000'),
            start_date=utcnow(), end_date=utcnow() + timedelta(days=1),
        )
        with pytest.raises(ConflictError):
            VoucherService(repo=repo).create_voucher(payload)
        repo.create.assert_not_called()

    def test_update_checks_merged_percentage(self):
        repo = MagicMock()
        repo.find_by_id.return_value = make_voucher(discount_type='fixed', discount_value=Decimal('500'))
        with pytest.raises(ValidationError, match='cannot exceed 100'):
            VoucherService(repo=repo).update_voucher(1, VoucherUpdate(discount_type='percentage'))

    def test_status_all_is_unfiltered(self):
        repo = MagicMock()
        repo.find_all.return_value = ([], 0)
        VoucherService(repo=repo).list_vouchers(None, 'all', None, 'latest', 20, 0)
        assert repo.find_all.call_args.kwargs['status'] is None

    def test_increment_tracks_user_only_with_per_user_limit(self):
        repo = MagicMock()
        repo.find_by_id.return_value = make_voucher()
        repo.increment_usage.return_value = make_voucher(usage_count=1)
        VoucherService(repo=repo).increment_usage(1, user_id=7)
        repo.increment_usage.assert_called_once_with(1, user_id=7, track_user=False)


def make_product(product_id=10, **overrides) -> Product:
    data = {
        'id': product_id,
        'name': f'Product {product_id}',
        'slug': f'product-{product_id}',
        'sku': f'SKU-{product_id}',
        'price': Decimal('100000'),
        'quantity': 20,
        'status': 'active',
    }
    data.update(overrides)
    return Product(**data)


def make_order(**overrides) -> Order:
    data = {'id': 1, 'order_number': 'ORD-251017-ABC123', 'user_id': CUSTOMER.id, 'total': Decimal('0')}
    data.update(overrides)
    return Order(**data)


class TestOrderCreate:
    """Checkout flow"""

    def setup_method(self):
        self.orders = MagicMock()
        self.products = MagicMock()
        self.vouchers = MagicMock()
        self.notifications = MagicMock()
        self.orders.order_number_exists.return_value = False
        self.orders.create.return_value = 1
        self.orders.find_by_id.return_value = make_order()
        self.service = OrderService(
            orders=self.orders, products=self.products,
            vouchers=self.vouchers, notifications=self.notifications,
        )

    def test_guest_needs_contact(self):
        with pytest.raises(ValidationError, match='Guest email and name'):
            self.service.create_order(OrderCreate(items=[OrderItemInput(product_id=10, quantity=1)]))

    def test_empty_cart(self):
        with pytest.raises(ValidationError, match='at least one item'):
            self.service.create_order(OrderCreate(), user=CUSTOMER)

    def test_merges_lines_and_freezes_prices(self):
        # Arrange
        self.products.find_by_ids.return_value = {10: make_product(10)}
        payload = OrderCreate(
            items=[OrderItemInput(product_id=10, quantity=1), OrderItemInput(product_id=10, quantity=2)],
            shipping_fee=Decimal('30000'),
        )

        # Act
        self.service.create_order(payload, user=CUSTOMER)

        # Assert
        order_data, items, stock_updates = self.orders.create.call_args[0]
        assert len(items) == 1
        assert items[0]['quantity'] == 3
        assert items[0]['total'] == Decimal('300000')
        assert order_data['subtotal'] == Decimal('300000')
        assert order_data['total'] == Decimal('330000')
        assert order_data['user_id'] == CUSTOMER.id
        assert order_data['guest_email'] is None
        assert stock_updates == {10: 3}
        self.notifications.create_order_notification.assert_called_once()

    def test_insufficient_stock(self):
        self.products.find_by_ids.return_value = {10: make_product(10, quantity=1)}
        payload = OrderCreate(items=[OrderItemInput(product_id=10, quantity=2)])
        with pytest.raises(ValidationError, match='Insufficient stock'):
            self.service.create_order(payload, user=CUSTOMER)
        self.orders.create.assert_not_called()

    def test_unknown_product(self):
        self.products.find_by_ids.return_value = {}
        payload = OrderCreate(items=[OrderItemInput(product_id=99, quantity=1)])
        with pytest.raises(NotFoundError):
            self.service.create_order(payload, user=CUSTOMER)

    def test_inactive_product(self):
        self.products.find_by_ids.return_value = {10: make_product(10, status='draft')}
        payload = OrderCreate(items=[OrderItemInput(product_id=10, quantity=1)])
        with pytest.raises(ValidationError, match='not available'):
            self.service.create_order(payload, user=CUSTOMER)

    def test_voucher_is_applied_and_consumed(self):
        self.products.find_by_ids.return_value = {10: make_product(10)}
        voucher = make_voucher()
        self.vouchers.preview.return_value = {'voucher': voucher, 'discount': Decimal('10000')}
        payload = OrderCreate(items=[OrderItemInput(product_id=10, quantity=1)], voucher_code='SALE10')

        self.service.create_order(payload, user=CUSTOMER)

        order_data = self.orders.create.call_args[0][0]
        assert order_data['discount_amount'] == Decimal('10000')
        assert order_data['total'] == Decimal('90000')
        assert order_data['voucher_code'] == 'SALE10'
        self.vouchers.increment_usage.assert_called_once_with(voucher.id, CUSTOMER.id)

    def test_notification_failure_does_not_fail_order(self):
        self.products.find_by_ids.return_value = {10: make_product(10)}
        self.notifications.create_order_notification.side_effect = RuntimeError('db down')
        payload = OrderCreate(items=[OrderItemInput(product_id=10, quantity=1)])

        order = self.service.create_order(payload, user=CUSTOMER)

        assert order.id == 1


class TestOrderWorkflow:
    """Access control, cancellation and status transitions"""

    def setup_method(self):
        self.orders = MagicMock()
        self.service = OrderService(
            orders=self.orders, products=MagicMock(), vouchers=MagicMock(), notifications=MagicMock(),
        )

    def test_customer_cannot_read_other_orders(self):
        self.orders.find_by_id.return_value = make_order(user_id=999)
        with pytest.raises(PermissionDeniedError):
            self.service.get_order(1, CUSTOMER)

    def test_staff_reads_any_order(self):
        self.orders.find_by_id.return_value = make_order(user_id=999)
        assert self.service.get_order(1, STAFF).id == 1

    def test_cancel_restores_stock(self):
        self.orders.find_by_id.return_value = make_order(status='pending')
        self.service.cancel_order(1, CUSTOMER, reason='Changed my mind')
        kwargs = self.orders.update_status.call_args.kwargs
        assert self.orders.update_status.call_args[0] == (1, 'cancelled')
        assert kwargs['restore_stock'] is True
        assert kwargs['cancel_reason'] == 'Changed my mind'

    def test_cancel_expects_status_that_was_read(self):
        self.orders.find_by_id.return_value = make_order(status='confirmed')
        self.service.cancel_order(1, CUSTOMER)
        assert self.orders.update_status.call_args.kwargs['expected_status'] == 'confirmed'

    def test_concurrent_cancel_is_a_conflict(self):
        self.orders.find_by_id.return_value = make_order(status='pending')
        self.orders.update_status.return_value = False

        with pytest.raises(ConflictError):
            self.service.cancel_order(1, CUSTOMER)

    def test_status_changed_meanwhile_is_a_conflict(self):
        self.orders.find_by_id.return_value = make_order(status='processing')
        self.orders.update_status.return_value = False

        with pytest.raises(ConflictError, match='processing'):
            self.service.update_status(1, OrderStatusUpdate(status='shipped'), STAFF)

    def test_cannot_cancel_shipped(self):
        self.orders.find_by_id.return_value = make_order(status='shipped')
        with pytest.raises(ValidationError):
            self.service.cancel_order(1, CUSTOMER)

    def test_invalid_transition(self):
        self.orders.find_by_id.return_value = make_order(status='pending')
        with pytest.raises(ValidationError, match='Cannot change order status'):
            self.service.update_status(1, OrderStatusUpdate(status='delivered'), STAFF)

    def test_valid_transition(self):
        self.orders.find_by_id.return_value = make_order(status='processing')
        self.service.update_status(1, OrderStatusUpdate(status='shipped', note='GHN'), STAFF)
        kwargs = self.orders.update_status.call_args.kwargs
        assert kwargs['restore_stock'] is False
        assert kwargs['changed_by'] == STAFF.id

    def test_delete_missing(self):
        self.orders.delete.return_value = False
        with pytest.raises(NotFoundError):
            self.service.delete_order(5)
