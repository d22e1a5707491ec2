"""
Unit tests for ProductRepository

These tests validate repository logic without requiring a database connection.

Author: TM3
Date: 2025-10-17
"""
import pytest
from unittest.mock import MagicMock, patch
from decimal import Decimal

from app.repositories.product_repository import ProductRepository
from app.core.exceptions import ValidationError
from app.domain.product import Product


class TestProductRepository:
    """Test ProductRepository methods"""

    @patch('app.core.database.get_db_connection_dict')
    def test_find_by_id_returns_product(self, mock_get_conn, product_row):
        """Test find_by_id returns a Product domain model"""
        # Arrange: Mock database connection
        mock_conn = MagicMock()
        mock_cursor = MagicMock()
        mock_get_conn.return_value = mock_conn
        mock_conn.cursor.return_value = mock_cursor
        mock_cursor.fetchone.return_value = product_row

        # Act: Call repository method
        repo = ProductRepository()
        product = repo.find_by_id(10)

        # Assert: Verify result
        assert product is not None
        assert isinstance(product, Product)
        assert product.id == 10
        assert product.sku == 'VT-001'
        assert product.category_name == 'Trái cây sấy'
        assert product.stock_status == 'in_stock'

        # Verify the transaction was committed and closed
        mock_cursor.execute.assert_called_once()
        mock_conn.commit.assert_called_once()
        mock_cursor.close.assert_called_once()
        mock_conn.close.assert_called_once()

    @patch('app.core.database.get_db_connection_dict')
    def test_find_by_id_returns_none_when_not_found(self, mock_get_conn):
        """Test find_by_id returns None when product doesn't exist"""
        # Arrange
        mock_conn = MagicMock()
        mock_cursor = MagicMock()
        mock_get_conn.return_value = mock_conn
        mock_conn.cursor.return_value = mock_cursor
        mock_cursor.fetchone.return_value = None

        # Act
        product = ProductRepository().find_by_id(999)

        # Assert
        assert product is None
        mock_cursor.close.assert_called_once()
        mock_conn.close.assert_called_once()

    def test_null_arrays_become_empty_lists(self, mock_db, product_row):
        """Test NULL tags/images columns map to empty lists"""
        _, mock_cursor = mock_db
        product_row['tags'] = None
        product_row['images'] = None
        mock_cursor.fetchone.return_value = product_row

        product = ProductRepository().find_by_slug('vai-thieu-say')

        assert product.tags == []
        assert product.images == []

    def test_find_all_with_filters(self, mock_db, product_row):
        """Test find_all builds WHERE conditions and returns total"""
        # Arrange
        _, mock_cursor = mock_db
        mock_cursor.fetchone.return_value = {'total': 1}
        mock_cursor.fetchall.return_value = [product_row]

        # Act
        products, total = ProductRepository().find_all(
            category_id=1, min_price=Decimal('50000'), status='active', search='vai',
            sort='price_asc', limit=10, offset=20,
        )

        # Assert
        assert total == 1
        assert len(products) == 1
        assert mock_cursor.execute.call_count == 2

        count_sql, count_params = mock_cursor.execute.call_args_list[0][0]
        assert 'p.category_id = %s' in count_sql
        assert 'p.status = %s' in count_sql
        assert 'ILIKE' in count_sql
        assert count_params == [1, Decimal('50000'), 'active', '%vai%', '%vai%', '%vai%']

        select_sql, select_params = mock_cursor.execute.call_args_list[1][0]
        assert 'ASC' in select_sql
        assert select_params[-2:] == [10, 20]

    def test_find_by_ids_skips_query_for_empty_list(self, mock_db):
        _, mock_cursor = mock_db
        assert ProductRepository().find_by_ids([]) == {}
        mock_cursor.execute.assert_not_called()

    def test_update_ignores_unknown_columns(self, mock_db, product_row):
        """Test update only writes whitelisted columns"""
        _, mock_cursor = mock_db
        mock_cursor.fetchone.return_value = product_row

        ProductRepository().update(10, {'price': Decimal('90000'), 'id': 5, 'hacker': 'x'})

        # First statement is the UPDATE, second re-reads the row
        sql, params = mock_cursor.execute.call_args_list[0][0]
        assert 'price = %s' in sql
        assert 'hacker' not in sql
        assert params == [Decimal('90000'), 10]

    def test_error_rolls_back(self, mock_db):
        """Test a failing query rolls back and re-raises"""
        mock_conn, mock_cursor = mock_db
        mock_cursor.execute.side_effect = RuntimeError('boom')

        with pytest.raises(RuntimeError):
            ProductRepository().find_by_id(1)

        mock_conn.rollback.assert_called_once()
        mock_conn.commit.assert_not_called()
        mock_conn.close.assert_called_once()

    def test_change_quantity_is_relative_and_guarded(self, mock_db, product_row):
        """Test stock changes add to the stored value instead of overwriting it"""
        _, mock_cursor = mock_db
        mock_cursor.rowcount = 1
        mock_cursor.fetchone.return_value = product_row

        product = ProductRepository().change_quantity(10, -3)

        sql, params = mock_cursor.execute.call_args_list[0][0]
        assert 'quantity = quantity + %s' in sql
        assert '(allow_backorder OR quantity + %s >= 0)' in sql
        assert params == (-3, 10, -3)
        assert product.id == 10

    def test_change_quantity_insufficient_stock(self, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_cursor.rowcount = 0
        mock_cursor.fetchone.return_value = {'?column?': 1}

        with pytest.raises(ValidationError, match='Insufficient stock'):
            ProductRepository().change_quantity(10, -50)

        mock_conn.rollback.assert_called_once()

    def test_change_quantity_missing_product(self, mock_db):
        _, mock_cursor = mock_db
        mock_cursor.rowcount = 0
        mock_cursor.fetchone.return_value = None

        assert ProductRepository().change_quantity(10, 5) is None
