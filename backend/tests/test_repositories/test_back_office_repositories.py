"""
Unit tests for order, voucher, inventory, translation and notification repositories

The psycopg2 connection is mocked through the mock_db fixture.

Author: TM3
Date: 2025-10-17
"""
import pytest
from psycopg2.extras import Json

from app.core.exceptions import NotFoundError, ValidationError
from app.domain.inventory import InventoryItem
from app.domain.notification import Notification, Recipient
from app.domain.translation import Translation
from app.repositories.inventory_repository import InventoryRepository
from app.repositories.notification_repository import NotificationRepository
from app.repositories.order_repository import OrderRepository
from app.repositories.translation_repository import TranslationRepository
from app.repositories.voucher_repository import VoucherRepository, STATUS_FILTERS


class TestVoucherRepository:

    def test_find_by_code(self, mock_db, voucher_row):
        _, mock_cursor = mock_db
        mock_cursor.fetchone.return_value = voucher_row

        voucher = VoucherRepository().find_by_code('SALE10')

        assert voucher.code == 'SALE10'
        assert voucher.per_user_limit == 2
        assert mock_cursor.execute.call_args[0][1] == ('SALE10',)

    def test_find_all_status_filter(self, mock_db, voucher_row):
        _, mock_cursor = mock_db
        mock_cursor.fetchone.return_value = {'total': 1}
        mock_cursor.fetchall.return_value = [voucher_row]

        vouchers, total = VoucherRepository().find_all(status='scheduled', sort='usage')

        assert total == 1
        count_sql = mock_cursor.execute.call_args_list[0][0][0]
        select_sql = mock_cursor.execute.call_args_list[1][0][0]
        assert STATUS_FILTERS['scheduled'] in count_sql
        assert 'usage_count DESC' in select_sql

    def test_user_usage_defaults_to_zero(self, mock_db):
        _, mock_cursor = mock_db
        mock_cursor.fetchone.return_value = None
        assert VoucherRepository().get_user_usage_count(1, 7) == 0

    def test_increment_usage_tracks_user(self, mock_db, voucher_row):
        _, mock_cursor = mock_db
        voucher_row['usage_count'] = 6
        mock_cursor.fetchone.return_value = voucher_row

        voucher = VoucherRepository().increment_usage(1, user_id=7, track_user=True)

        assert voucher.usage_count == 6
        assert mock_cursor.execute.call_count == 2
        upsert_sql, upsert_params = mock_cursor.execute.call_args_list[1][0]
        assert 'ON CONFLICT (voucher_id, user_id)' in upsert_sql
        assert upsert_params == (1, 7)

    def test_increment_usage_without_user(self, mock_db, voucher_row):
        _, mock_cursor = mock_db
        mock_cursor.fetchone.return_value = voucher_row
        VoucherRepository().increment_usage(1)
        assert mock_cursor.execute.call_count == 1


class TestInventoryRepository:

    def test_adjust_writes_item_and_history(self, mock_db, inventory_row):
        # Arrange
        mock_conn, mock_cursor = mock_db
        updated_row = dict(inventory_row, quantity=50)
        history_row = {
            'id': 1, 'inventory_id': 3, 'item_name': 'Mứt vải', 'type': 'import', 'amount': 10,
            'unit': 'Lọ', 'partner': 'NCC', 'note': None, 'created_by': 2, 'created_at': None,
        }
        mock_cursor.fetchone.side_effect = [updated_row, history_row]
        item = InventoryItem(**inventory_row)

        # Act
        updated, history = InventoryRepository().adjust(item, 10, 'import', 10, partner='NCC', created_by=2)

        # Assert: relative update guarded against going negative
        assert updated.quantity == 50
        assert history.type == 'import'
        sql, params = mock_cursor.execute.call_args_list[0][0]
        assert 'quantity = quantity + %s' in sql
        assert 'quantity + %s >= 0' in sql
        assert params == (10, 3, 10)
        mock_conn.commit.assert_called_once()

    def test_adjust_export_beyond_stock_rolls_back(self, mock_db, inventory_row):
        mock_conn, mock_cursor = mock_db
        # UPDATE matched nothing, but the item still exists
        mock_cursor.fetchone.side_effect = [None, {'?column?': 1}]

        with pytest.raises(ValidationError, match='Insufficient stock'):
            InventoryRepository().adjust(InventoryItem(**inventory_row), -41, 'export', 41)

        assert mock_cursor.execute.call_count == 2
        mock_conn.rollback.assert_called_once()
        mock_conn.commit.assert_not_called()

    def test_adjust_deleted_item(self, mock_db, inventory_row):
        mock_conn, mock_cursor = mock_db
        mock_cursor.fetchone.side_effect = [None, None]

        with pytest.raises(NotFoundError):
            InventoryRepository().adjust(InventoryItem(**inventory_row), 5, 'import', 5)

        mock_conn.rollback.assert_called_once()

    def test_low_stock_filter(self, mock_db, inventory_row):
        _, mock_cursor = mock_db
        mock_cursor.fetchone.return_value = {'total': 0}
        mock_cursor.fetchall.return_value = []

        InventoryRepository().find_all(low_stock=True, location='Kho A')

        count_sql, params = mock_cursor.execute.call_args_list[0][0]
        assert 'quantity < min_stock' in count_sql
        assert params == ['Kho A']


class TestTranslationRepository:

    def test_find_values_maps_keys(self, mock_db):
        _, mock_cursor = mock_db
        mock_cursor.fetchall.return_value = [{'key': 'title_en', 'value': 'Title'}]

        values = TranslationRepository().find_values(['title_en', 'title_vn'])

        assert values == {'title_en': 'Title'}
        assert mock_cursor.execute.call_args[0][1] == (['title_en', 'title_vn'],)

    def test_find_values_empty(self, mock_db):
        _, mock_cursor = mock_db
        assert TranslationRepository().find_values([]) == {}
        mock_cursor.execute.assert_not_called()

    def test_upsert_on_key(self, mock_db):
        _, mock_cursor = mock_db
        row = {
            'id': 1, 'key': 'title_en', 'base_key': 'title', 'locale': 'en', 'variant': None,
            'value': 'Title', 'category': 'ui', 'description': None, 'updated_by': 4,
            'created_at': None, 'updated_at': None,
        }
        mock_cursor.fetchone.return_value = row

        translation = TranslationRepository().upsert(
            Translation(key='title_en', base_key='title', locale='en', value='Title', updated_by=4)
        )

        assert translation.id == 1
        assert 'ON CONFLICT (key)' in mock_cursor.execute.call_args[0][0]


class TestNotificationRepository:

    def test_create_serializes_recipients(self, mock_db):
        _, mock_cursor = mock_db
        mock_cursor.fetchone.return_value = {
            'id': 1, 'type': 'system', 'title': 'T', 'message': 'M', 'data': {},
            'recipients': [{'all_employees': True}], 'created_at': None,
        }

        notification = NotificationRepository().create(
            Notification(type='system', title='T', message='M', recipients=[Recipient(user_id=7)])
        )

        params = mock_cursor.execute.call_args[0][1]
        assert isinstance(params[4], Json)
        assert params[4].adapted == [{'user_id': 7, 'all_employees': False}]
        assert notification.id == 1

    def test_staff_visibility_includes_all_employees(self):
        clause, params = NotificationRepository._visibility(1, 'Employee', True)
        assert clause.count('@>') == 3
        assert params[1].adapted == [{'role': 'employee'}]

    def test_customer_visibility(self):
        clause, params = NotificationRepository._visibility(1, 'customer', False)
        assert clause.count('@>') == 2
        assert params[0].adapted == [{'user_id': 1}]

    def test_delete_visible_scopes_to_recipient(self, mock_db):
        _, mock_cursor = mock_db
        mock_cursor.rowcount = 0

        deleted = NotificationRepository().delete_visible(4, 7, 'customer', False)

        sql, params = mock_cursor.execute.call_args[0]
        assert deleted is False
        assert 'n.id = %s' in sql
        assert sql.count('@>') == 2
        assert params[0] == 4
        assert params[1].adapted == [{'user_id': 7}]

    def test_cleanup_ignores_read_state(self, mock_db):
        _, mock_cursor = mock_db
        mock_cursor.rowcount = 5

        removed = NotificationRepository().delete_older_than(30)

        sql, params = mock_cursor.execute.call_args[0]
        assert removed == 5
        assert 'read' not in sql
        assert params == (30,)


class TestOrderRepository:
    """Stock and status guards live in SQL so concurrent requests cannot bypass them"""

    ORDER = {
        'order_number': 'ORD-251017-ABC123', 'user_id': 7, 'subtotal': 240000,
        'discount_amount': 0, 'shipping_fee': 0, 'total': 240000,
    }
    ITEMS = [{
        'product_id': 10, 'product_name': 'Vải sấy', 'sku': 'VS-1',
        'quantity': 2, 'unit_price': 120000, 'total': 240000,
    }]

    def test_create_decrements_only_available_stock(self, mock_db):
        _, mock_cursor = mock_db
        mock_cursor.fetchone.return_value = {'id': 5}
        mock_cursor.rowcount = 1

        order_id = OrderRepository().create(self.ORDER, self.ITEMS, {10: 2}, changed_by=7)

        assert order_id == 5
        stock_sql, stock_params = mock_cursor.execute.call_args_list[2][0]
        assert 'UPDATE products' in stock_sql
        assert '(allow_backorder OR quantity >= %s)' in stock_sql
        assert stock_params == (2, 10, 2)

    def test_create_insufficient_stock_rolls_back_order(self, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_cursor.fetchone.return_value = {'id': 5}
        mock_cursor.rowcount = 0

        with pytest.raises(ValidationError, match='Insufficient stock for product 10'):
            OrderRepository().create(self.ORDER, self.ITEMS, {10: 2})

        mock_conn.rollback.assert_called_once()
        mock_conn.commit.assert_not_called()

    def test_update_status_checks_current_status(self, mock_db):
        _, mock_cursor = mock_db
        mock_cursor.rowcount = 1

        applied = OrderRepository().update_status(
            1, 'cancelled', restore_stock=True, expected_status='pending',
        )

        sql, params = mock_cursor.execute.call_args_list[0][0]
        assert applied is True
        assert 'WHERE id = %s AND status = %s' in sql
        assert params[-2:] == [1, 'pending']
        assert mock_cursor.execute.call_count == 3

    def test_update_status_lost_race_restores_nothing(self, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_cursor.rowcount = 0

        applied = OrderRepository().update_status(
            1, 'cancelled', restore_stock=True, expected_status='pending',
        )

        assert applied is False
        mock_cursor.execute.assert_called_once()

    def test_update_status_without_guard(self, mock_db):
        _, mock_cursor = mock_db
        mock_cursor.rowcount = 1

        OrderRepository().update_status(1, 'shipped')

        sql, params = mock_cursor.execute.call_args_list[0][0]
        assert 'AND status = %s' not in sql
        assert params[-1] == 1
