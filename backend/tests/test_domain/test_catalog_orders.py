"""
Unit tests for Product and Order domain models

Author: TM3
Date: 2025-10-17
"""
import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from app.domain.product import Product, LOW_STOCK_THRESHOLD
from app.domain.order import Order, OrderItem, can_transition, generate_order_number

NOW = datetime(2025, 10, 17, 12, 0, tzinfo=timezone.utc)


def make_product(**overrides) -> Product:
    data = {
        'id': 1,
        'name': 'Vải thiều sấy',
        'slug': 'vai-thieu-say',
        'sku': 'VT-001',
        'price': Decimal('100000'),
        'quantity': 50,
        'status': 'active',
    }
    data.update(overrides)
    return Product(**data)


class TestProductPricing:
    """final_price and discount_percentage"""

    def test_regular_price_when_not_on_sale(self):
        product = make_product(sale_price=Decimal('80000'))
        assert product.final_price(NOW) == Decimal('100000')

    def test_sale_price_inside_window(self):
        product = make_product(
            on_sale=True, sale_price=Decimal('80000'),
            sale_start_date=NOW - timedelta(days=1), sale_end_date=NOW + timedelta(days=1),
        )
        assert product.final_price(NOW) == Decimal('80000')

    def test_sale_price_ignored_outside_window(self):
        product = make_product(
            on_sale=True, sale_price=Decimal('80000'),
            sale_start_date=NOW + timedelta(days=1),
        )
        assert product.final_price(NOW) == Decimal('100000')

    def test_discount_percentage_against_compare_price(self):
        product = make_product(compare_price=Decimal('150000'))
        assert product.discount_percentage(NOW) == 33

    def test_no_discount_without_compare_price(self):
        assert make_product().discount_percentage(NOW) == 0


class TestProductStock:
    """Stock status and fulfilment checks"""

    def test_low_stock(self):
        product = make_product(quantity=LOW_STOCK_THRESHOLD)
        assert product.stock_status == 'low_stock'
        assert product.is_in_stock

    def test_out_of_stock(self):
        product = make_product(quantity=0)
        assert product.stock_status == 'out_of_stock'
        assert not product.is_in_stock
        assert not product.can_fulfil(1)

    def test_backorder_is_always_fulfillable(self):
        product = make_product(quantity=0, allow_backorder=True)
        assert product.is_in_stock
        assert product.can_fulfil(100)

    def test_untracked_quantity(self):
        product = make_product(quantity=0, track_quantity=False)
        assert product.stock_status == 'in_stock'
        assert product.can_fulfil(5)

    def test_to_dict_has_computed_fields(self):
        data = make_product(compare_price=Decimal('200000')).to_dict()
        assert data['final_price'] == 100000.0
        assert data['discount_percentage'] == 50
        assert data['stock_status'] == 'in_stock'
        assert data['price'] == 100000.0


class TestOrder:
    """Order status machine and number format"""

    def test_allowed_transitions(self):
        assert can_transition('pending', 'confirmed')
        assert can_transition('processing', 'shipped')
        assert can_transition('shipped', 'delivered')

    def test_forbidden_transitions(self):
        assert not can_transition('pending', 'delivered')
        assert not can_transition('shipped', 'cancelled')
        assert not can_transition('cancelled', 'pending')
        assert not can_transition('delivered', 'shipped')

    def test_order_number_format(self):
        number = generate_order_number(NOW)
        assert re.fullmatch(r'ORD-251017-[A-Z0-9]{6}', number)

    def test_cancellable_statuses(self):
        order = Order(id=1, order_number='ORD-1', total=Decimal('0'), status='confirmed')
        assert order.is_cancellable
        order.status = 'shipped'
        assert not order.is_cancellable

    def test_to_dict_computed_fields(self):
        order = Order(
            id=1, order_number='ORD-1', total=Decimal('190000'), subtotal=Decimal('200000'),
            discount_amount=Decimal('10000'),
            items=[
                OrderItem(product_name='A', quantity=2, unit_price=Decimal('50000'), total=Decimal('100000')),
                OrderItem(product_name='B', quantity=1, unit_price=Decimal('100000'), total=Decimal('100000')),
            ],
        )
        data = order.to_dict()
        assert data['item_count'] == 2
        assert data['total_quantity'] == 3
        assert data['is_guest'] is True
        assert data['total'] == 190000.0
