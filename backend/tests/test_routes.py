# Overview: Pytest coverage for the JSON API surface (status codes and payload shapes).

from datetime import date

from conftest import tenant_headers
from khataplus.models import DailyReport, InventoryItem, KhataTransaction, Sale
from khataplus.services import organization_service, reporting_service


class TestTenantHeader:

    def test_missing_org_header(self, client, db_session, org_a):
        response = client.get('/api/inventory')
        assert response.status_code == 401

    def test_malformed_org_header(self, client, db_session, org_a):
        response = client.get('/api/inventory', headers={'X-Org-Id': 'abc'})
        assert response.status_code == 401

    def test_unknown_org(self, client, db_session):
        response = client.get('/api/inventory', headers={'X-Org-Id': '999999'})
        assert response.status_code == 404

    def test_profile_must_belong_to_org(self, client, db_session, org_a, org_b):
        other = organization_service.create_profile(org_b.id, "owner@gupta.example", role="owner")
        response = client.get('/api/inventory', headers=tenant_headers(org_a, other))
        assert response.status_code == 404


class TestInventoryRoutes:

    def test_create_item_with_hsn_rate(self, client, db_session, org_a):
        response = client.post('/api/inventory', headers=tenant_headers(org_a), json={
            'sku': 'bis-002',
            'name': 'Cream biscuits',
            'buy_price': '18.50',
            'hsn_code': '1905',
            'stock': 24,
        })
        assert response.status_code == 201
        item = response.json['item']
        assert item['sku'] == 'BIS-002'
        assert item['gst_percentage'] == '18.00'
        assert item['stock'] == 24

    def test_duplicate_sku_conflicts(self, client, db_session, org_a, item_a):
        response = client.post('/api/inventory', headers=tenant_headers(org_a), json={
            'sku': item_a.sku, 'name': 'Again', 'buy_price': '1',
        })
        assert response.status_code == 409

    def test_stock_is_not_patchable(self, client, db_session, org_a, item_a):
        response = client.patch(f'/api/inventory/{item_a.id}', headers=tenant_headers(org_a), json={'stock': 99})
        assert response.status_code == 400

    def test_restock(self, client, db_session, org_a, item_a):
        response = client.post(
            f'/api/inventory/{item_a.id}/restock', headers=tenant_headers(org_a), json={'quantity': 5}
        )
        assert response.status_code == 200
        assert response.json['item']['stock'] == 15

    def test_unknown_hsn_is_unprocessable(self, client, db_session, org_a):
        response = client.post('/api/inventory', headers=tenant_headers(org_a), json={
            'sku': 'X1', 'name': 'Mystery', 'buy_price': '1', 'hsn_code': '0000',
        })
        assert response.status_code == 422


class TestSalesRoutes:

    def test_record_sale_updates_daily_report(self, client, db_session, org_a, item_a):
        response = client.post('/api/sales', headers=tenant_headers(org_a), json={
            'inventory_id': item_a.id,
            'quantity': 2,
            'unit_price': '100',
            'payment_method': 'Cash',
        })
        assert response.status_code == 201
        sale = response.json['sale']
        assert sale['total_amount'] == '236.00'
        assert sale['gst_amount'] == '36.00'

        report = db_session.query(DailyReport).filter_by(org_id=org_a.id).one()
        assert report.sale_count == 1

    def test_oversell_conflicts(self, client, db_session, org_a, item_a):
        response = client.post('/api/sales', headers=tenant_headers(org_a), json={
            'inventory_id': item_a.id, 'quantity': 11, 'unit_price': '100', 'payment_method': 'Cash',
        })
        assert response.status_code == 409
        assert response.json['details']['on_hand'] == 10

    def test_batch_and_group_lookup(self, client, db_session, org_a, item_a):
        response = client.post('/api/sales/batch', headers=tenant_headers(org_a), json={
            'lines': [{'inventory_id': item_a.id, 'quantity': 1, 'unit_price': '100'}],
            'payment_method': 'UPI',
        })
        assert response.status_code == 201
        batch_id = response.json['invoice']['id']

        response = client.get(f'/api/sales/groups/{batch_id}', headers=tenant_headers(org_a))
        assert response.status_code == 200
        assert len(response.json['items']) == 1

    def test_credit_sale_then_mark_paid(self, client, db_session, org_a, item_a, customer_a):
        response = client.post('/api/sales', headers=tenant_headers(org_a), json={
            'inventory_id': item_a.id, 'quantity': 1, 'unit_price': '100',
            'payment_method': 'Credit', 'customer_id': customer_a.id,
        })
        sale_id = response.json['sale']['id']
        assert response.json['sale']['payment_status'] == 'pending'

        response = client.get(f'/api/khata/customers/{customer_a.id}', headers=tenant_headers(org_a))
        assert response.json['customer']['balance'] == '118.00'

        response = client.post(f'/api/sales/{sale_id}/mark-paid', headers=tenant_headers(org_a))
        assert response.status_code == 200
        assert response.json['sale']['payment_status'] == 'paid'

        response = client.get(f'/api/khata/customers/{customer_a.id}', headers=tenant_headers(org_a))
        assert response.json['customer']['balance'] == '0.00'

    def test_report_failure_rolls_back_the_sale(self, client, db_session, org_a, item_a, monkeypatch):
        def broken_rebuild(*args, **kwargs):
            raise RuntimeError("report table unavailable")

        monkeypatch.setattr(reporting_service, "rebuild_daily_report", broken_rebuild)
        response = client.post('/api/sales', headers=tenant_headers(org_a), json={
            'inventory_id': item_a.id, 'quantity': 2, 'unit_price': '100', 'payment_method': 'Cash',
        })
        assert response.status_code == 500

        db_session.expire_all()
        assert db_session.query(Sale).count() == 0
        assert db_session.get(InventoryItem, item_a.id).stock == 10
        assert db_session.query(DailyReport).count() == 0

    def test_sale_carries_invoice_number(self, client, db_session, org_a, item_a):
        response = client.post('/api/sales/batch', headers=tenant_headers(org_a), json={
            'lines': [{'inventory_id': item_a.id, 'quantity': 1, 'unit_price': '100'}],
            'payment_method': 'Cash',
        })
        assert response.json['invoice']['invoiceNo'] == 'INV-000001'
        assert response.json['invoice']['items'][0]['invoice_no'] == 'INV-000001'

    def test_sale_credit_not_reversible_from_khata(self, client, db_session, org_a, item_a, customer_a):
        response = client.post('/api/sales', headers=tenant_headers(org_a), json={
            'inventory_id': item_a.id, 'quantity': 1, 'unit_price': '100',
            'payment_method': 'Credit', 'customer_id': customer_a.id,
        })
        sale_id = response.json['sale']['id']
        txn = db_session.query(KhataTransaction).filter_by(sale_id=sale_id).one()

        response = client.post(
            f'/api/khata/transactions/{txn.id}/reverse',
            headers=tenant_headers(org_a),
            json={'reason': 'Wrong customer'},
        )
        assert response.status_code == 409

        response = client.post(f'/api/sales/{sale_id}/mark-paid', headers=tenant_headers(org_a))
        assert response.status_code == 200
        response = client.get(f'/api/khata/customers/{customer_a.id}', headers=tenant_headers(org_a))
        assert response.json['customer']['balance'] == '0.00'

    def test_list_sales_by_date(self, client, db_session, org_a, item_a):
        client.post('/api/sales', headers=tenant_headers(org_a), json={
            'inventory_id': item_a.id, 'quantity': 1, 'unit_price': '100', 'payment_method': 'Cash',
        })
        response = client.get('/api/sales?start=2000-01-01', headers=tenant_headers(org_a))
        assert response.status_code == 200
        assert len(response.json['sales']) == 1

        response = client.get('/api/sales?start=not-a-date', headers=tenant_headers(org_a))
        assert response.status_code == 400


class TestKhataRoutes:

    def test_credit_payment_statement(self, client, db_session, org_a):
        response = client.post('/api/khata/customers', headers=tenant_headers(org_a), json={'name': 'Meena'})
        assert response.status_code == 201
        customer_id = response.json['customer']['id']

        response = client.post(
            f'/api/khata/customers/{customer_id}/transactions',
            headers=tenant_headers(org_a),
            json={'type': 'credit', 'amount': '500'},
        )
        assert response.status_code == 201
        assert response.json['balance'] == '500.00'

        response = client.post(
            f'/api/khata/customers/{customer_id}/transactions',
            headers=tenant_headers(org_a),
            json={'type': 'payment', 'amount': '200'},
        )
        assert response.json['balance'] == '300.00'
        payment_id = response.json['transaction']['id']

        response = client.get(f'/api/khata/customers/{customer_id}/statement', headers=tenant_headers(org_a))
        statement = response.json['statement']
        assert [line['balance'] for line in statement['lines']] == ['500.00', '300.00']

        response = client.post(
            f'/api/khata/transactions/{payment_id}/reverse',
            headers=tenant_headers(org_a),
            json={'reason': 'Cheque bounced'},
        )
        assert response.status_code == 200
        assert response.json['balance'] == '500.00'

    def test_zero_amount_rejected(self, client, db_session, org_a, customer_a):
        response = client.post(
            f'/api/khata/customers/{customer_a.id}/transactions',
            headers=tenant_headers(org_a),
            json={'type': 'credit', 'amount': 0},
        )
        assert response.status_code == 400

    def test_supplier_ledger(self, client, db_session, org_a, supplier_a):
        response = client.post(
            f'/api/suppliers/{supplier_a.id}/transactions',
            headers=tenant_headers(org_a),
            json={'type': 'purchase', 'amount': '1200', 'invoice_no': 'MW-77'},
        )
        assert response.status_code == 201
        assert response.json['transaction']['invoice_no'] == 'MW-77'
        assert response.json['balance'] == '1200.00'


class TestTaxRoutes:

    def test_compute(self, client, db_session):
        response = client.post('/api/tax/compute', json={'amount': '236', 'rate_percent': 18, 'mode': 'inclusive'})
        assert response.status_code == 200
        assert response.json['tax']['taxable_value'] == '200.00'
        assert response.json['tax']['tax_amount'] == '36.00'

    def test_hsn_lookup(self, client, db_session):
        response = client.get('/api/tax/hsn/85171300')
        assert response.status_code == 200
        assert response.json['hsn']['rate'] == '18.00'

    def test_unknown_hsn(self, client, db_session):
        assert client.get('/api/tax/hsn/0000').status_code == 422


class TestReportRoutes:

    def test_rebuild_and_summary(self, client, db_session, org_a):
        client.post('/api/expenses', headers=tenant_headers(org_a), json={
            'category': 'Rent', 'amount': '75', 'expense_date': '2026-03-01',
        })
        response = client.post('/api/reports/daily/2026-03-01/rebuild', headers=tenant_headers(org_a))
        assert response.status_code == 200
        assert response.json['report']['expenses'] == '75.00'

        response = client.get(
            '/api/reports/summary?start=2026-03-01&end=2026-03-31', headers=tenant_headers(org_a)
        )
        assert response.json['summary']['net_profit'] == '-75.00'

    def test_gst_reports_need_range(self, client, db_session, org_a):
        response = client.get('/api/reports/gstr3b', headers=tenant_headers(org_a))
        assert response.status_code == 400

    def test_gstr1_json_needs_integer_period(self, client, db_session, org_a):
        response = client.get('/api/reports/gstr1/json?month=march&year=2026', headers=tenant_headers(org_a))
        assert response.status_code == 400

    def test_gstr1_json_empty_month(self, client, db_session, org_a):
        response = client.get('/api/reports/gstr1/json?month=3&year=2026', headers=tenant_headers(org_a))
        assert response.status_code == 200
        assert response.json['fp'] == '032026'
        assert response.json['b2b'] == []


class TestAnalyticsAndSettings:

    def test_stock_health_shape(self, client, db_session, org_a, item_a):
        response = client.get('/api/analytics/stock-health', headers=tenant_headers(org_a))
        assert response.status_code == 200
        row = response.json['items'][0]
        assert row['status'] == 'dormant'
        assert row['days_of_cover'] is None

    def test_reorder_suggestions_empty_without_sales(self, client, db_session, org_a, item_a):
        response = client.get('/api/analytics/reorder-suggestions', headers=tenant_headers(org_a))
        assert response.json['suggestions'] == []

    def test_update_settings(self, client, db_session, org_a):
        response = client.patch('/api/organization/settings', headers=tenant_headers(org_a), json={
            'gst_inclusive': True,
        })
        assert response.status_code == 200
        assert response.json['organization']['gst_inclusive'] is True

    def test_unknown_setting_rejected(self, client, db_session, org_a):
        response = client.patch('/api/organization/settings', headers=tenant_headers(org_a), json={'slug': 'x'})
        assert response.status_code == 400

    def test_health(self, client, db_session):
        response = client.get('/health')
        assert response.status_code == 200
