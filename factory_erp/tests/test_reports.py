from datetime import date

from factory_erp.models import OrderStatus


def test_month_summary_counts_only_shipped_orders(container):
    reports = container.report_service
    summary = reports.period_summary('尚品家居有限公司', 2023, 'MONTH', 10)
    assert [o.id for o in summary['orders']] == ['ORD-2023-001']
    assert summary['total_quantity'] == 50
    assert summary['total_amount'] == 25000

    # still pending, not in the statement
    assert reports.period_summary('美好生活馆', 2023, 'MONTH', 11)['orders'] == []


def test_quarter_uses_delivery_date(container):
    reports = container.report_service
    assert len(reports.period_summary('蓝天贸易', 2023, 'QUARTER', 4)['orders']) == 1
    assert reports.period_summary('蓝天贸易', 2023, 'QUARTER', 3)['orders'] == []
    assert reports.period_summary('蓝天贸易', 2022, 'QUARTER', 4)['orders'] == []


def test_order_date_used_without_delivery_date(container):
    orders = container.order_service
    result = orders.create_order('Acme', [{'product_name': '重型货架', 'quantity': 2}],
                                 order_date='2024-02-10', status=OrderStatus.SHIPPED)
    assert result['ok']
    summary = container.report_service.period_summary('Acme', 2024, 'MONTH', 2)
    assert summary['total_amount'] == 4500


def test_no_customer_means_no_report(container):
    assert container.report_service.period_summary('', 2023, 'MONTH', 10) is None


def test_year_options():
    from factory_erp.services import ReportService
    assert ReportService.year_options(date(2024, 5, 1)) == [2023, 2024, 2025, 2026]
