"""
Pytest fixtures and configuration for the back office backend tests

This file provides shared fixtures that can be used across all test modules.

Author: TM3
Date: 2025-10-17
"""
import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock, patch

from dotenv import load_dotenv

# Load environment variables for tests
load_dotenv()

from app.core.auth import create_access_token
from app.core.cache import MemoryCache
from app.core.rate_limit import rate_limiter


NOW = datetime(2025, 10, 17, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Every test starts with empty rate limit windows"""
    rate_limiter.reset()
    yield
    rate_limiter.reset()


@pytest.fixture
def mock_db():
    """
    Patches the psycopg2 connection used by transaction()

    Yields (connection, cursor) mocks; set cursor.fetchone / fetchall
    return values in the test.
    """
    with patch('app.core.database.get_db_connection_dict') as mock_get_conn:
        mock_conn = MagicMock()
        mock_cursor = MagicMock()
        mock_get_conn.return_value = mock_conn
        mock_conn.cursor.return_value = mock_cursor
        yield mock_conn, mock_cursor


@pytest.fixture
def memory_cache():
    return MemoryCache(default_ttl=60)


@pytest.fixture
def make_token():
    """Factory for bearer tokens: make_token(role="admin", user_id=1)"""
    def _make(role: str = "customer", user_id: int = 1, email: str = None):
        return create_access_token(
            user_id=user_id,
            email=email or f"{role}{user_id}@shop.vn",
            role=role,
            name=f"{role.title()} {user_id}",
        )
    return _make


@pytest.fixture
def auth_headers(make_token):
    """Factory for Authorization headers: auth_headers("employee")"""
    def _headers(role: str = "customer", user_id: int = 1):
        return {"Authorization": f"Bearer {make_token(role, user_id)}"}
    return _headers


@pytest.fixture
def app():
    from app.main import app as fastapi_app
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """FastAPI TestClient (httpx) over the full application"""
    from fastapi.testclient import TestClient
    with TestClient(app) as test_client:
        yield test_client


# ============================================================================
# Sample rows (as returned by RealDictCursor)
# ============================================================================

@pytest.fixture
def voucher_row():
    return {
        'id': 1,
        'code': 'SALE10',
        'name': 'Giảm 10%',
        'description': None,
        'discount_type': 'percentage',
        'discount_value': Decimal('10'),
        'max_discount_value': Decimal('50000'),
        'min_order_value': Decimal('100000'),
        'start_date': NOW - timedelta(days=1),
        'end_date': NOW + timedelta(days=30),
        'usage_limit': 100,
        'usage_count': 5,
        'per_user_limit': 2,
        'status': 'active',
        'is_active': True,
        'last_used_at': None,
        'created_by': 1,
        'created_at': NOW - timedelta(days=2),
        'updated_at': None,
    }


@pytest.fixture
def product_row():
    return {
        'id': 10,
        'name': 'Vải thiều sấy',
        'slug': 'vai-thieu-say',
        'sku': 'VT-001',
        'description': 'Dried lychee',
        'short_description': None,
        'price': Decimal('120000'),
        'compare_price': Decimal('150000'),
        'cost_price': Decimal('80000'),
        'sale_price': None,
        'on_sale': False,
        'sale_start_date': None,
        'sale_end_date': None,
        'quantity': 50,
        'track_quantity': True,
        'allow_backorder': False,
        'category_id': 1,
        'category_name': 'Trái cây sấy',
        'brand_id': 2,
        'brand_name': 'LALA-LYCHEE',
        'tags': ['lychee'],
        'images': [],
        'status': 'active',
        'is_visible': True,
        'is_featured': True,
        'published_at': NOW - timedelta(days=10),
        'created_at': NOW - timedelta(days=10),
        'updated_at': None,
    }


@pytest.fixture
def inventory_row():
    return {
        'id': 3,
        'name': 'Mứt vải',
        'quantity': 40,
        'unit': 'Lọ',
        'net_weight': 165,
        'min_stock': 10,
        'price': Decimal('85000'),
        'location': 'Kho A',
        'category': 'Premium',
        'created_at': NOW,
        'updated_at': None,
    }
