"""
API tests through FastAPI's TestClient

Services are swapped with app.dependency_overrides so no database is
touched; these tests check routing, auth, status codes and the envelope.

Author: TM3
Date: 2025-10-17
"""
from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock, patch

from app.api.advertisements import get_advertisement_service
from app.api.catalog import get_catalog_service
from app.api.debts import get_debt_service
from app.api.delivery import get_delivery_service
from app.api.inventory import get_inventory_service
from app.api.notifications import get_notification_service
from app.api.orders import get_order_service
from app.api.translations import get_translation_service
from app.api.vouchers import get_voucher_service
from app.core.clock import utcnow
from app.core.exceptions import NotFoundError, ValidationError
from app.domain.inventory import InventoryItem
from app.domain.order import Order
from app.domain.product import Product
from app.domain.voucher import Voucher

API = '/api/v1'


def override(app, provider, service):
    app.dependency_overrides[provider] = lambda: service
    return service


class TestSystemEndpoints:

    def test_root(self, client):
        response = client.get('/')
        assert response.status_code == 200
        assert response.json()['status'] == 'online'

    @patch('app.main.get_db_connection_with_retry')
    def test_health_degraded_without_database(self, mock_connect, client):
        mock_connect.side_effect = RuntimeError('connection refused')

        response = client.get('/health')

        body = response.json()
        assert response.status_code == 200
        assert body['status'] == 'degraded'
        assert body['database']['status'] == 'disconnected'
        assert 'connection refused' in body['database']['error']

    @patch('app.main.get_db_connection_with_retry')
    def test_health_connected(self, mock_connect, client):
        mock_connect.return_value = MagicMock()
        body = client.get('/health').json()
        assert body['status'] == 'healthy'
        assert body['database']['latency_ms'] is not None

    def test_unknown_route_uses_envelope(self, client):
        response = client.get(f'{API}/does-not-exist')
        assert response.status_code == 404
        assert response.json()['success'] is False


class TestAuthGuards:
    """401 without token, 403 with the wrong role"""

    def test_missing_token(self, client):
        response = client.get(f'{API}/orders')
        assert response.status_code == 401
        assert response.json() == {'success': False, 'message': 'Authentication required'}

    def test_invalid_token(self, client):
        response = client.get(f'{API}/orders', headers={'Authorization': 'Bearer garbage'})
        assert response.status_code == 401

    def test_customer_cannot_reach_staff_router(self, client, auth_headers):
        response = client.get(f'{API}/debts', headers=auth_headers('customer'))
        assert response.status_code == 403
        assert response.json()['success'] is False

    def test_employee_cannot_manage_users(self, client, auth_headers):
        response = client.get(f'{API}/users', headers=auth_headers('employee'))
        assert response.status_code == 403

    def test_translator_cannot_create_vouchers(self, client, auth_headers):
        response = client.post(f'{API}/vouchers', json={}, headers=auth_headers('translator'))
        assert response.status_code == 403


class TestCatalogEndpoints:

    def test_public_product_list(self, app, client):
        service = override(app, get_catalog_service, MagicMock())
        service.list_products.return_value = (
            [Product(id=1, name='Vải', slug='vai', sku='V1', price=Decimal('100000'), status='active')], 1,
        )

        response = client.get(f'{API}/products', params={'page': 1, 'limit': 10, 'search': 'vai'})

        body = response.json()
        assert response.status_code == 200
        assert body['success'] is True
        assert body['data'][0]['final_price'] == 100000.0
        assert body['pagination'] == {'page': 1, 'limit': 10, 'total': 1, 'pages': 1}
        assert service.list_products.call_args.kwargs['is_staff'] is False

    def test_missing_product(self, app, client):
        service = override(app, get_catalog_service, MagicMock())
        service.get_product.side_effect = NotFoundError('Product', 99)

        response = client.get(f'{API}/products/99')

        assert response.status_code == 404
        assert response.json() == {'success': False, 'message': "Product with id '99' not found"}

    def test_create_product_requires_staff(self, app, client, auth_headers):
        override(app, get_catalog_service, MagicMock())
        response = client.post(f'{API}/products', json={'name': 'A', 'sku': 'A', 'price': 1},
                               headers=auth_headers('customer'))
        assert response.status_code == 403

    def test_create_product_validation(self, app, client, auth_headers):
        override(app, get_catalog_service, MagicMock())
        response = client.post(f'{API}/products', json={'name': 'A'}, headers=auth_headers('employee'))

        body = response.json()
        assert response.status_code == 400
        assert body['message'] == 'Validation error'
        assert {error['field'] for error in body['errors']} >= {'sku', 'price'}


class TestOrderEndpoints:

    def test_guest_checkout_created(self, app, client):
        service = override(app, get_order_service, MagicMock())
        service.create_order.return_value = Order(id=1, order_number='ORD-251017-ABC123', total=Decimal('120000'))

        response = client.post(f'{API}/orders/guest', json={
            'items': [{'product_id': 1, 'quantity': 1}],
            'guest_email': 'khach@shop.vn',
            'guest_name': 'Khách',
        })

        assert response.status_code == 201
        assert response.json()['message'] == 'Order created successfully'
        assert response.json()['data']['is_guest'] is True
        assert service.create_order.call_args.kwargs['user'] is None

    def test_business_error_is_400(self, app, client, auth_headers):
        service = override(app, get_order_service, MagicMock())
        service.create_order.side_effect = ValidationError('Order must contain at least one item')

        response = client.post(f'{API}/orders', json={'items': []}, headers=auth_headers('customer'))

        assert response.status_code == 400
        assert response.json()['message'] == 'Order must contain at least one item'

    def test_cancel_without_body(self, app, client, auth_headers):
        service = override(app, get_order_service, MagicMock())
        service.cancel_order.return_value = Order(id=1, order_number='ORD-1', total=Decimal('0'), status='cancelled')

        response = client.put(f'{API}/orders/1/cancel', headers=auth_headers('customer'))

        assert response.status_code == 200
        assert response.json()['data']['status'] == 'cancelled'


class TestVoucherEndpoints:

    def test_apply_returns_preview(self, app, client):
        now = utcnow()
        voucher = Voucher(
            id=1, code='SALE10', name='Sale', discount_type='percentage', discount_value=Decimal('10'),
            start_date=now - timedelta(days=1), end_date=now + timedelta(days=1), status='active',
        )
        service = override(app, get_voucher_service, MagicMock())
        service.preview.return_value = {
            'voucher': voucher, 'discount': Decimal('20000'),
            'final_amount': Decimal('180000'), 'runtime_status': 'active',
        }

        response = client.post(f'{API}/vouchers/apply', json={'code': 'sale10', 'subtotal': 200000})

        data = response.json()['data']
        assert response.status_code == 200
        assert data['discount'] == 20000
        assert data['voucher']['runtime_status'] == 'active'
        service.preview.assert_called_once()
        assert service.preview.call_args[0][2] is None

    def test_apply_is_rate_limited(self, app, client):
        service = override(app, get_voucher_service, MagicMock())
        service.preview.side_effect = ValidationError('Voucher has expired')

        statuses = [
            client.post(f'{API}/vouchers/apply', json={'code': 'X', 'subtotal': 1}).status_code
            for _ in range(31)
        ]

        assert statuses[:30] == [400] * 30
        assert statuses[30] == 429

    def test_admin_list_rejects_bad_status(self, app, client, auth_headers):
        override(app, get_voucher_service, MagicMock())
        response = client.get(f'{API}/vouchers', params={'status': 'bogus'}, headers=auth_headers('admin'))
        assert response.status_code == 400


class TestBackOfficeEndpoints:

    def test_inventory_list(self, app, client, auth_headers):
        service = override(app, get_inventory_service, MagicMock())
        service.list_items.return_value = {
            'items': [InventoryItem(id=1, name='Mứt vải', quantity=5).to_dict()], 'total': 1,
        }

        response = client.get(f'{API}/inventory', params={'low_stock': True}, headers=auth_headers('employee'))

        body = response.json()
        assert response.status_code == 200
        assert body['data'][0]['is_low_stock'] is True
        assert service.list_items.call_args.kwargs['low_stock'] is True

    def test_delivery_new_code(self, app, client, auth_headers):
        service = override(app, get_delivery_service, MagicMock())
        service.new_code.return_value = 'LALC1025-4321'

        response = client.get(f'{API}/delivery/new', headers=auth_headers('employee'))

        assert response.json()['data'] == {'order_code': 'LALC1025-4321'}

    def test_delivery_update_rejects_null_status(self, app, client, auth_headers):
        service = override(app, get_delivery_service, MagicMock())

        response = client.put(f'{API}/delivery/1', json={'status': None}, headers=auth_headers('employee'))

        assert response.status_code == 400
        assert response.json()['message'] == 'Validation error'
        service.update_delivery.assert_not_called()

    def test_notification_delete_is_scoped_to_caller(self, app, client, auth_headers):
        service = override(app, get_notification_service, MagicMock())
        service.delete.side_effect = NotFoundError('Notification', 4)

        response = client.delete(f'{API}/notifications/4', headers=auth_headers('customer', user_id=7))

        assert response.status_code == 404
        notification_id, user = service.delete.call_args[0]
        assert notification_id == 4
        assert (user.id, user.role) == (7, 'customer')

    def test_debt_create_missing_fields(self, app, client, auth_headers):
        service = override(app, get_debt_service, MagicMock())
        service.create_debt.side_effect = ValidationError('Customer ID, Order ID, amount, and due date are required')

        response = client.post(f'{API}/debts', json={}, headers=auth_headers('admin'))

        assert response.status_code == 400


class TestPublicContent:

    def test_translation_resolve(self, app, client):
        service = override(app, get_translation_service, MagicMock())
        service.resolve.return_value = 'Tiêu đề'

        response = client.get(f'{API}/translations/ja/title', params={'variant': 'short'})

        assert response.json()['data'] == {'key': 'title', 'locale': 'ja', 'variant': 'short', 'value': 'Tiêu đề'}
        service.resolve.assert_called_once_with('title', 'ja', 'short')

    def test_translation_locale_map(self, app, client):
        service = override(app, get_translation_service, MagicMock())
        service.get_locale_map.return_value = {'title': 'Title'}
        assert client.get(f'{API}/translations/en').json()['data'] == {'title': 'Title'}

    def test_active_ad_uses_accept_language(self, app, client):
        service = override(app, get_advertisement_service, MagicMock())
        service.get_active.return_value = None

        response = client.get(f'{API}/advertisements/active', headers={'Accept-Language': 'en-US,en;q=0.9'})

        assert response.status_code == 200
        assert response.json()['data'] is None
        service.get_active.assert_called_once_with(None, 'en')
