"""
Tests for the Aggregation Layer

Tests cover:
- FetchResult reductions and the degrade-to-zero policy
- Dashboard statistics and profit & loss arithmetic
- Concurrent fan-out of scoped fetches
- Discarding passes whose active company changed mid-flight
- End-to-end aggregation against the database
"""

import pytest
from unittest.mock import patch
from types import SimpleNamespace
from decimal import Decimal
from datetime import datetime

from ledgerdesk.models import db, User, Company
from ledgerdesk.services.results import FetchResult
from ledgerdesk.services.aggregation import (
    DashboardStats, ProfitLossReport, fan_out, compute_dashboard, compute_profit_loss,
    build_dashboard, build_profit_loss
)
from ledgerdesk.services.repositories import (SalesOrderRepository, SaleReceiptRepository,
                                              InvoiceRepository, ExpenseRepository)
from ledgerdesk.utils.company_context import CompanyContext


def rows(*values, attr='total', **extra):
    return FetchResult.ok([SimpleNamespace(**{attr: value}, **extra) for value in values])


def empty():
    return FetchResult.ok([])


@pytest.mark.unit
class TestFetchResult:

    def test_total_of_rows(self):
        assert rows('100.50', 200, None).total('total') == Decimal('300.50')

    def test_total_of_dict_rows(self):
        assert FetchResult.ok([{'total': 5}, {'total': '7'}]).total('total') == Decimal('12')

    def test_failed_result_reduces_to_zero(self):
        result = FetchResult.failed(RuntimeError('boom'))
        assert not result.succeeded
        assert result.total('total') == Decimal('0')
        assert result.count() == 0
        assert result.value_or('fallback') == 'fallback'

    def test_count_with_predicate(self):
        result = FetchResult.ok([SimpleNamespace(status=s) for s in ('paid', 'unpaid', 'partial')])
        assert result.count() == 3
        assert result.count(lambda row: row.status != 'paid') == 2


@pytest.mark.unit
class TestComputeDashboard:

    def _invoices(self, *statuses):
        return FetchResult.ok([SimpleNamespace(total=Decimal('100'), status=s) for s in statuses])

    def test_sales_expenses_profit(self):
        stats = compute_dashboard(
            sales_orders=rows(1200),
            expenses=rows(500),
            invoices=empty(),
            purchase_orders=empty(),
            sale_receipts=empty(),
        )
        assert stats.total_sales == Decimal('1200')
        assert stats.total_expenses == Decimal('500')
        assert stats.profit == Decimal('700')

    def test_receipts_count_as_sales(self):
        stats = compute_dashboard(rows(100), rows(0), empty(), empty(), rows(50, 25))
        assert stats.total_sales == Decimal('175')

    def test_invoice_counts(self):
        stats = compute_dashboard(empty(), empty(),
                                  self._invoices('unpaid', 'partial', 'paid', 'pending'),
                                  empty(), empty())
        assert stats.total_invoices == 4
        assert stats.unpaid_invoices == 2

    def test_pending_purchase_orders_counts_rows(self):
        pending = FetchResult.ok([SimpleNamespace(status='pending')] * 3)
        stats = compute_dashboard(empty(), empty(), empty(), pending, empty())
        assert stats.pending_purchase_orders == 3

    def test_negative_profit(self):
        stats = compute_dashboard(rows(100), rows(250), empty(), empty(), empty())
        assert stats.profit == Decimal('-150')

    def test_failed_fetch_contributes_zero(self):
        stats = compute_dashboard(
            sales_orders=FetchResult.failed(RuntimeError('timeout')),
            expenses=rows(80),
            invoices=FetchResult.failed(RuntimeError('timeout')),
            purchase_orders=empty(),
            sale_receipts=rows(20),
        )
        assert stats.total_sales == Decimal('20')
        assert stats.total_invoices == 0
        assert stats.profit == Decimal('-60')

    def test_to_dict_is_json_ready(self):
        data = DashboardStats(total_sales=Decimal('10.5')).to_dict()
        assert data['total_sales'] == 10.5
        assert data['unpaid_invoices'] == 0


@pytest.mark.unit
class TestComputeProfitLoss:

    def test_revenue_includes_paid_invoice_amounts(self):
        report = compute_profit_loss(
            sales_orders=empty(),
            expenses=rows(200),
            sale_receipts=rows(300),
            invoices=FetchResult.ok([SimpleNamespace(total=Decimal('1000'),
                                                     paid_amount=Decimal('400'))]),
        )
        assert report.total_revenue == Decimal('700')
        assert report.total_expenses == Decimal('200')
        assert report.gross_profit == Decimal('500')
        assert report.net_profit == Decimal('500')
        assert round(report.profit_margin, 2) == Decimal('71.43')
        assert report.performance == 'Excellent performance'

    def test_zero_revenue_gives_zero_margin(self):
        report = compute_profit_loss(empty(), rows(50), empty(), empty())
        assert report.total_revenue == Decimal('0')
        assert report.net_profit == Decimal('-50')
        assert report.profit_margin == Decimal('0')
        assert report.performance == 'Needs improvement'

    @pytest.mark.parametrize('margin,verdict', [
        (Decimal('25'), 'Excellent performance'),
        (Decimal('20'), 'Excellent performance'),
        (Decimal('15'), 'Good performance'),
        (Decimal('10'), 'Good performance'),
        (Decimal('5'), 'Needs improvement'),
        (Decimal('0'), 'Needs improvement'),
        (Decimal('-1'), 'Operating at a loss'),
    ])
    def test_performance_thresholds(self, margin, verdict):
        assert ProfitLossReport(profit_margin=margin).performance == verdict

    def test_to_dict_rounds_margin(self):
        report = compute_profit_loss(rows(300), rows(200), empty(), empty())
        data = report.to_dict()
        assert data['profit_margin'] == 33.33
        assert data['net_profit'] == 100.0
        assert data['performance'] == 'Excellent performance'


@pytest.mark.unit
class TestFanOut:

    def test_collects_named_results(self):
        results = fan_out({'a': lambda: FetchResult.ok([1]), 'b': lambda: [2, 3]}, max_workers=2)
        assert results['a'].rows == [1]
        # Plain return values are wrapped as successful results
        assert results['b'].rows == [2, 3]

    def test_raising_task_becomes_failed_result(self):
        def broken():
            raise RuntimeError('network down')

        results = fan_out({'ok': lambda: FetchResult.ok([1]), 'broken': broken}, max_workers=2)
        assert results['ok'].succeeded
        assert not results['broken'].succeeded
        assert isinstance(results['broken'].error, RuntimeError)

    def test_tasks_run_in_application_context(self, fresh_app):
        from flask import current_app
        results = fan_out({'name': lambda: [current_app.name]})
        assert results['name'].rows == [fresh_app.name]


def _owner_context():
    owner = User.query.filter_by(email='owner@test.com').first()
    context = CompanyContext(owner).initialize()
    context.select_company(Company.query.filter_by(name='Acme Holdings').first().id)
    return context


class TestBuildAgainstDatabase:
    """Aggregation over the seeded companies"""

    def test_dashboard_for_acme(self, init_database):
        stats = build_dashboard(_owner_context())
        assert stats.total_sales == Decimal('1200')
        assert stats.total_expenses == Decimal('500')
        assert stats.profit == Decimal('700')
        assert stats.total_invoices == 1
        assert stats.unpaid_invoices == 1
        assert stats.pending_purchase_orders == 0

    def test_dashboard_ignores_other_companies(self, init_database):
        owner = User.query.filter_by(email='owner@test.com').first()
        context = CompanyContext(owner).initialize()
        # Beta Traders is the newest and has no records
        stats = build_dashboard(context)
        assert stats == DashboardStats()

    def test_no_company_gives_zeros(self, init_database):
        newcomer = User.query.filter_by(email='newcomer@test.com').first()
        context = CompanyContext(newcomer).initialize()
        assert build_dashboard(context) == DashboardStats()
        assert build_profit_loss(context) == ProfitLossReport()

    def test_profit_loss_scenario(self, init_database):
        owner = User.query.filter_by(email='owner@test.com').first()
        delta = Company(user_id=owner.id, name='Delta Foods', created_at=datetime(2024, 6, 1))
        db.session.add(delta)
        db.session.commit()

        invoice = InvoiceRepository().create(delta.id, owner.id, {
            'invoice_number': 'INV-D1', 'customer_name': 'Customer', 'subtotal': '1000'})
        invoice.paid_amount = Decimal('400')
        db.session.commit()
        SaleReceiptRepository().create(delta.id, owner.id, {
            'receipt_number': 'RCT-D1', 'customer_name': 'Walk-in', 'subtotal': '300'})
        ExpenseRepository().create(delta.id, owner.id, {
            'expense_number': 'EXP-D1', 'vendor': 'Vendor', 'amount': '200'})

        context = CompanyContext(owner).initialize()
        assert context.selected_company.name == 'Delta Foods'
        report = build_profit_loss(context)
        assert report.total_revenue == Decimal('700')
        assert report.total_expenses == Decimal('200')
        assert report.net_profit == Decimal('500')
        assert round(report.profit_margin, 2) == Decimal('71.43')

    def test_recomputes_on_every_call(self, init_database):
        context = _owner_context()
        assert build_dashboard(context).total_sales == Decimal('1200')

        SalesOrderRepository().create(context.selected_company_id, context.user_id, {
            'so_number': 'SO-002', 'customer_name': 'Customer', 'subtotal': '300'})
        assert build_dashboard(context).total_sales == Decimal('1500')

    def test_one_failed_fetch_degrades_only_its_figure(self, init_database):
        context = _owner_context()
        with patch.object(ExpenseRepository, 'fetch',
                          return_value=FetchResult.failed(RuntimeError('timeout'))):
            stats = build_dashboard(context)
        assert stats.total_expenses == Decimal('0')
        assert stats.total_sales == Decimal('1200')
        assert stats.profit == Decimal('1200')

    def test_stale_pass_is_discarded(self, init_database):
        context = _owner_context()
        beta_id = Company.query.filter_by(name='Beta Traders').first().id
        real_fetch = SalesOrderRepository.fetch

        def switch_mid_flight(self, *args, **kwargs):
            result = real_fetch(self, *args, **kwargs)
            context.generation += 1
            context.selected_company = context.find(beta_id)
            return result

        with patch.object(SalesOrderRepository, 'fetch', switch_mid_flight):
            assert build_dashboard(context) is None

    def test_stale_report_pass_is_discarded(self, init_database):
        context = _owner_context()
        real_fetch = ExpenseRepository.fetch

        def bump(self, *args, **kwargs):
            context.generation += 1
            return real_fetch(self, *args, **kwargs)

        with patch.object(ExpenseRepository, 'fetch', bump):
            assert build_profit_loss(context) is None
