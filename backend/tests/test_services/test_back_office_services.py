"""
Unit tests for debt, invoice, delivery, inventory and translation services

Author: TM3
Date: 2025-10-17
"""
import pytest
from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock

from app.core.cache import MemoryCache
from app.core.clock import utcnow
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.domain.debt import Debt, DebtCreate, DebtItem, DebtPayment
from app.domain.delivery import DeliveryCreate, DeliveryItem, DeliveryOrder, DeliveryUpdate, DeliveryItemInput
from app.domain.inventory import InventoryHistory, InventoryItem, StockAdjustment, InventoryUpdate
from app.domain.invoice import Invoice, InvoiceCreate, InvoiceIssue, InvoiceOrder, InvoiceRemind
from app.domain.order import Order
from app.domain.translation import Translation, TranslationUpsert
from app.services.debt_service import DebtService
from app.services.delivery_service import DeliveryService
from app.services.inventory_service import InventoryService
from app.services.invoice_service import InvoiceService
from app.services.translation_service import TranslationService


def make_order(order_id, total='100000'):
    return Order(id=order_id, order_number=f'ORD-{order_id}', total=Decimal(total), created_at=utcnow())


def make_debt_item(item_id, amount='100000', status='pending', order_id=None):
    return DebtItem(
        id=item_id, order_id=order_id or item_id, order_number=f'ORD-{item_id}',
        amount=Decimal(amount), due_date=utcnow() + timedelta(days=10), status=status,
    )


class TestDebtService:
    """Debt creation and payments"""

    def setup_method(self):
        self.repo = MagicMock()
        self.orders = MagicMock()
        self.service = DebtService(repo=self.repo, orders=self.orders)

    def _payload(self, **overrides):
        data = {
            'customer_id': 5, 'order_id': 3, 'amount': Decimal('150000'),
            'due_date': utcnow() + timedelta(days=30),
        }
        data.update(overrides)
        return DebtCreate(**data)

    def test_create_requires_fields(self):
        with pytest.raises(ValidationError, match='required'):
            self.service.create_debt(DebtCreate(customer_id=5))

    def test_create_unknown_order(self):
        self.orders.find_by_id.return_value = None
        with pytest.raises(NotFoundError):
            self.service.create_debt(self._payload())

    def test_create_opens_new_debt(self):
        # Arrange
        self.orders.find_by_id.return_value = make_order(3)
        self.repo.find_by_customer.return_value = []
        self.repo.create.return_value = 11

        # Act
        self.service.create_debt(self._payload(), user_id=2)

        # Assert
        debt = self.repo.create.call_args[0][0]
        assert debt.customer_id == 5
        assert debt.total_amount == Decimal('150000')
        assert debt.status == 'pending'
        assert debt.items[0].order_number == 'ORD-3'
        assert debt.history[-1].action == 'created'
        self.repo.find_by_id.assert_called_with(11)

    def test_create_joins_latest_debt(self):
        self.orders.find_by_id.return_value = make_order(3)
        existing = Debt(id=4, customer_id=5, items=[make_debt_item(1)])
        self.repo.find_by_customer.return_value = [existing]

        self.service.create_debt(self._payload())

        saved = self.repo.save.call_args[0][0]
        assert saved.id == 4
        assert len(saved.items) == 2
        assert saved.total_amount == Decimal('250000')
        self.repo.create.assert_not_called()

    def test_create_rejects_duplicate_order(self):
        self.orders.find_by_id.return_value = make_order(3)
        self.repo.find_by_customer.return_value = [Debt(id=4, customer_id=5, items=[make_debt_item(1, order_id=3)])]
        with pytest.raises(ConflictError):
            self.service.create_debt(self._payload())

    def test_pay_single_item(self):
        debt = Debt(id=4, customer_id=5, items=[make_debt_item(1), make_debt_item(2, '50000')])
        self.repo.find_by_id.return_value = debt

        self.service.mark_paid(4, DebtPayment(item_id=2, payment_proof='/uploads/debts/p.png'))

        saved = self.repo.save.call_args[0][0]
        assert saved.status == 'partial'
        assert saved.paid_amount == Decimal('50000')
        assert saved.find_item(2).payment_proof == '/uploads/debts/p.png'

    def test_pay_all_items(self):
        debt = Debt(id=4, customer_id=5, items=[make_debt_item(1), make_debt_item(2, '50000')])
        self.repo.find_by_id.return_value = debt

        self.service.mark_paid(4, DebtPayment())

        saved = self.repo.save.call_args[0][0]
        assert saved.status == 'paid'
        assert saved.history[-1].amount == Decimal('150000')

    def test_pay_already_paid_item(self):
        self.repo.find_by_id.return_value = Debt(id=4, customer_id=5, items=[make_debt_item(1, status='paid')])
        with pytest.raises(ValidationError, match='already paid'):
            self.service.mark_paid(4, DebtPayment(item_id=1))

    def test_customer_summary(self):
        first = Debt(id=1, customer_id=5, items=[make_debt_item(1, status='paid')])
        second = Debt(id=2, customer_id=5, items=[make_debt_item(2, '50000')])
        first.recalculate_totals()
        second.recalculate_totals()
        self.repo.find_by_customer.return_value = [first, second]

        summary = self.service.customer_debts(5)['summary']

        assert summary == {
            'total_amount': 150000.0, 'paid_amount': 100000.0, 'remaining_amount': 50000.0, 'count': 2,
        }


class TestInvoiceService:
    """Invoice reminders and issuing"""

    def setup_method(self):
        self.repo = MagicMock()
        self.orders = MagicMock()
        self.service = InvoiceService(repo=self.repo, orders=self.orders)

    def _invoice(self, **overrides):
        data = {
            'id': 1, 'customer_id': 5, 'orders': [InvoiceOrder(order_id=1, amount=Decimal('100000'))],
            'deadline': utcnow() + timedelta(days=7),
        }
        data.update(overrides)
        return Invoice(**data)

    def test_create_requires_deadline(self):
        with pytest.raises(ValidationError):
            self.service.create_invoice(InvoiceCreate(customer_id=5, order_ids=[1]))

    def test_create_reports_missing_orders(self):
        self.orders.find_by_ids.return_value = {1: make_order(1)}
        payload = InvoiceCreate(customer_id=5, order_ids=[1, 2], deadline=utcnow() + timedelta(days=7))
        with pytest.raises(NotFoundError, match=r'\[2\]'):
            self.service.create_invoice(payload)

    def test_create_rejects_overlapping_open_invoice(self):
        self.orders.find_by_ids.return_value = {1: make_order(1)}
        self.repo.find_open_duplicate.return_value = self._invoice()
        payload = InvoiceCreate(customer_id=5, order_ids=[1], deadline=utcnow() + timedelta(days=7))
        with pytest.raises(ConflictError):
            self.service.create_invoice(payload)

    def test_create_totals_orders(self):
        self.orders.find_by_ids.return_value = {1: make_order(1, '100000'), 2: make_order(2, '50000')}
        self.repo.find_open_duplicate.return_value = None
        self.repo.create.return_value = 9
        payload = InvoiceCreate(customer_id=5, order_ids=[2, 1, 2], deadline=utcnow() + timedelta(days=7))

        self.service.create_invoice(payload, user_id=2)

        invoice = self.repo.create.call_args[0][0]
        assert invoice.order_ids == [1, 2]
        assert invoice.total_amount == Decimal('150000')
        assert invoice.status == 'pending'
        self.repo.find_open_duplicate.assert_called_once_with(5, [1, 2])

    def test_remind_then_issue(self):
        invoice = self._invoice()
        self.repo.find_by_id.return_value = invoice

        self.service.remind(1, InvoiceRemind())
        assert invoice.status == 'reminded'

        self.service.issue(1, InvoiceIssue(invoice_number='hd-0001'))
        assert invoice.status == 'issued'
        assert invoice.invoice_number == 'HD-0001'
        assert [entry.action for entry in invoice.history] == ['reminded', 'issued']

    def test_issue_twice_rejected(self):
        self.repo.find_by_id.return_value = self._invoice(status='issued')
        with pytest.raises(ValidationError, match='already issued'):
            self.service.issue(1, InvoiceIssue())

    def test_attach_vat_file(self):
        invoice = self._invoice()
        self.repo.find_by_id.return_value = invoice
        self.service.attach_file(1, '/uploads/invoices/vat.pdf', file_type='vat')
        assert invoice.invoice_vat == '/uploads/invoices/vat.pdf'
        assert invoice.invoice_file is None


class TestDeliveryService:

    def setup_method(self):
        self.repo = MagicMock()
        self.service = DeliveryService(repo=self.repo)

    def _payload(self, **overrides):
        data = {
            'order_code': 'lalc1025-1234', 'buyer_name': '  Cô Lan  ', 'delivery_date': utcnow(),
            'items': [DeliveryItem(name='Mứt vải', quantity=2, price=Decimal('85000'))],
            'proof_image': '/uploads/proofs/a.png',
        }
        data.update(overrides)
        return DeliveryCreate(**data)

    def test_new_code_skips_taken(self):
        self.repo.code_exists.side_effect = [True, False]
        code = self.service.new_code()
        assert code.startswith('LALC')
        assert self.repo.code_exists.call_count == 2

    def test_create_requires_proof(self):
        with pytest.raises(ValidationError, match='Proof image'):
            self.service.create_delivery(self._payload(proof_image=None))

    def test_create_rejects_duplicate_code(self):
        self.repo.code_exists.return_value = True
        with pytest.raises(ConflictError):
            self.service.create_delivery(self._payload())

    def test_create_completes_order(self):
        self.repo.code_exists.return_value = False
        self.repo.create.return_value = 3

        self.service.create_delivery(self._payload(), user_id=2)

        delivery = self.repo.create.call_args[0][0]
        assert delivery.order_code == 'LALC1025-1234'
        assert delivery.buyer_name == 'Cô Lan'
        assert delivery.status == 'completed'
        assert delivery.amount == Decimal('170000')

    def test_update_merges_items(self):
        delivery = DeliveryOrder(
            id=3, order_code='LALC1025-1234', buyer_name='Lan', delivery_date=utcnow(),
            items=[DeliveryItem(id=1, name='Mứt vải', quantity=2, price=Decimal('85000'))],
        )
        self.repo.find_by_id.return_value = delivery

        self.service.update_delivery(3, DeliveryUpdate(items=[DeliveryItemInput(id=1, quantity=5)]))

        saved = self.repo.save.call_args[0][0]
        assert saved.items[0].quantity == 5
        assert saved.amount == Decimal('425000')

    def test_missing_proof(self):
        self.repo.find_by_id.return_value = DeliveryOrder(
            id=3, order_code='X', delivery_date=utcnow(),
        )
        with pytest.raises(NotFoundError):
            self.service.get_proof(3)


class TestInventoryService:

    def setup_method(self):
        self.repo = MagicMock()
        self.cache = MemoryCache()
        self.service = InventoryService(repo=self.repo, cache=self.cache)

    def _item(self, quantity=40):
        return InventoryItem(id=1, name='Mứt vải', quantity=quantity)

    def test_list_is_cached(self):
        self.repo.find_all.return_value = ([self._item()], 1)

        first = self.service.list_items(limit=20, offset=0)
        second = self.service.list_items(limit=20, offset=0)

        assert first == second
        assert first['total'] == 1
        self.repo.find_all.assert_called_once()

    def test_export_over_stock_rejected(self):
        self.repo.find_by_id.return_value = self._item(5)
        with pytest.raises(ValidationError, match='Insufficient stock'):
            self.service.adjust_stock(1, StockAdjustment(type='export', amount=6))
        self.repo.adjust.assert_not_called()

    def test_adjust_clears_cache(self):
        self.cache.set('inventory:stats', {'total_items': 1})
        self.repo.find_by_id.return_value = self._item(5)
        history = InventoryHistory(id=1, inventory_id=1, item_name='Mứt vải', type='import', amount=10)
        self.repo.adjust.return_value = (self._item(15), history)

        item, _ = self.service.adjust_stock(1, StockAdjustment(type='import', amount=10, partner='NCC'), user_id=2)

        assert item.quantity == 15
        assert self.repo.adjust.call_args[0][1:] == (10, 'import', 10)
        assert self.cache.get('inventory:stats') is None

    def test_export_passes_negative_delta(self):
        self.repo.find_by_id.return_value = self._item(5)
        history = InventoryHistory(id=2, inventory_id=1, item_name='Mứt vải', type='export', amount=3)
        self.repo.adjust.return_value = (self._item(2), history)

        self.service.adjust_stock(1, StockAdjustment(type='export', amount=3))

        assert self.repo.adjust.call_args[0][1:] == (-3, 'export', 3)

    def test_update_missing(self):
        self.repo.update.return_value = None
        with pytest.raises(NotFoundError):
            self.service.update_item(1, InventoryUpdate(quantity=3))


class TestTranslationService:

    def setup_method(self):
        self.repo = MagicMock()
        self.cache = MemoryCache()
        self.service = TranslationService(repo=self.repo, cache=self.cache)

    def test_resolve_walks_fallback_chain(self):
        self.repo.find_values.return_value = {'title_vn': 'Tiêu đề', 'title_en': 'Title'}
        assert self.service.resolve('title', 'ja') == 'Tiêu đề'

    def test_resolve_falls_back_to_base_key(self):
        self.repo.find_values.return_value = {}
        assert self.service.resolve('missing_key', 'en') == 'missing_key'

    def test_variant_preferred(self):
        self.repo.find_values.return_value = {'title_short_en': 'T', 'title_en': 'Title'}
        assert self.service.resolve_many(['title'], 'en', 'short') == {'title': 'T'}

    def test_unsupported_locale(self):
        with pytest.raises(ValidationError, match='Unsupported locale'):
            self.service.get_locale_map('xx')

    def test_locale_map_keys(self):
        self.repo.find_by_locale.return_value = [
            Translation(key='title_en', base_key='title', locale='en', value='Title'),
            Translation(key='title_short_en', base_key='title', locale='en', variant='short', value='T'),
        ]
        assert self.service.get_locale_map('EN') == {'title': 'Title', 'title_short': 'T'}
        self.service.get_locale_map('en')
        self.repo.find_by_locale.assert_called_once_with('en')

    def test_upsert_requires_locale_suffix(self):
        with pytest.raises(ValidationError):
            self.service.upsert(TranslationUpsert(key='title', value='x'))

    def test_upsert_parses_key_and_invalidates(self):
        self.cache.set('translations:locale:en', {'a': 'b'})
        self.repo.upsert.side_effect = lambda translation: translation

        translation = self.service.upsert(TranslationUpsert(key='title_long_en', value='Long'), user_id=4)

        assert (translation.base_key, translation.locale, translation.variant) == ('title', 'en', 'long')
        assert translation.updated_by == 4
        assert self.cache.get('translations:locale:en') is None

    def test_bulk_import_reports_failures(self):
        self.repo.upsert.side_effect = lambda translation: translation

        result = self.service.bulk_import([
            {'key': 'title_en', 'value': 'Title'},
            {'key': 'nolocale', 'value': 'x'},
            {'value': 'no key'},
        ])

        assert result['success'] == 1
        assert result['failed'] == 2
        assert result['errors'][0]['key'] == 'nolocale'

    def test_delete_missing(self):
        self.repo.delete.return_value = False
        with pytest.raises(NotFoundError):
            self.service.delete('title_en')
