"""
Aggregation Service
Dashboard statistics and profit & loss figures, recomputed from the store on every call
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, asdict
from decimal import Decimal
from flask import current_app, has_app_context

from ledgerdesk.services.repositories import (PurchaseOrderRepository, SalesOrderRepository,
                                              InvoiceRepository, SaleReceiptRepository,
                                              ExpenseRepository)
from ledgerdesk.services.results import FetchResult

logger = logging.getLogger(__name__)

ZERO = Decimal('0')
UNPAID_INVOICE_STATUSES = ('unpaid', 'partial')


@dataclass
class DashboardStats:
    total_sales: Decimal = ZERO
    total_expenses: Decimal = ZERO
    total_invoices: int = 0
    unpaid_invoices: int = 0
    pending_purchase_orders: int = 0
    profit: Decimal = ZERO

    def to_dict(self):
        data = asdict(self)
        for key in ('total_sales', 'total_expenses', 'profit'):
            data[key] = float(data[key])
        return data


@dataclass
class ProfitLossReport:
    total_revenue: Decimal = ZERO
    total_expenses: Decimal = ZERO
    gross_profit: Decimal = ZERO
    net_profit: Decimal = ZERO
    profit_margin: Decimal = ZERO

    @property
    def performance(self):
        """Short verdict on the profit margin"""
        if self.profit_margin >= 20:
            return 'Excellent performance'
        if self.profit_margin >= 10:
            return 'Good performance'
        if self.profit_margin >= 0:
            return 'Needs improvement'
        return 'Operating at a loss'

    def to_dict(self):
        data = {key: float(value) for key, value in asdict(self).items()}
        data['profit_margin'] = round(data['profit_margin'], 2)
        data['performance'] = self.performance
        return data


def _run_with_context(app, task):
    if app is None:
        return task()
    with app.app_context():
        return task()


def fan_out(tasks, max_workers=None, app=None):
    """
    Run named fetch callables concurrently and collect their FetchResults.

    Every task runs in its own application context so it gets its own
    database session. A task that raises is recorded as a failed result;
    the other results are kept.
    """
    if app is None and has_app_context():
        app = current_app._get_current_object()
    if max_workers is None:
        max_workers = app.config.get('AGGREGATION_MAX_WORKERS', 5) if app is not None else 5
    max_workers = max(1, min(max_workers, len(tasks) or 1))

    results = {}
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {name: executor.submit(_run_with_context, app, task)
                   for name, task in tasks.items()}
        for name, future in futures.items():
            try:
                result = future.result()
            except Exception as e:
                logger.exception(f"Fetch '{name}' failed")
                result = FetchResult.failed(e)
            if not isinstance(result, FetchResult):
                result = FetchResult.ok(result)
            results[name] = result
    return results


def compute_dashboard(sales_orders, expenses, invoices, purchase_orders, sale_receipts):
    """Reduce the five dashboard fetches to statistics"""
    total_sales = sales_orders.total('total') + sale_receipts.total('total')
    total_expenses = expenses.total('total')
    return DashboardStats(
        total_sales=total_sales,
        total_expenses=total_expenses,
        total_invoices=invoices.count(),
        unpaid_invoices=invoices.count(lambda row: row.status in UNPAID_INVOICE_STATUSES),
        # Already narrowed to pending orders by the query
        pending_purchase_orders=purchase_orders.count(),
        profit=total_sales - total_expenses,
    )


def compute_profit_loss(sales_orders, expenses, sale_receipts, invoices):
    """
    Reduce the four report fetches to a profit & loss statement.

    Invoices contribute what has been paid on them, not their total, so
    unrealised revenue is not counted.
    """
    total_revenue = (sales_orders.total('total')
                     + sale_receipts.total('total')
                     + invoices.total('paid_amount'))
    total_expenses = expenses.total('total')
    gross_profit = total_revenue - total_expenses
    net_profit = gross_profit  # no tax or non-operating adjustments are modelled
    if total_revenue > 0:
        profit_margin = net_profit / total_revenue * 100
    else:
        profit_margin = ZERO
    return ProfitLossReport(
        total_revenue=total_revenue,
        total_expenses=total_expenses,
        gross_profit=gross_profit,
        net_profit=net_profit,
        profit_margin=profit_margin,
    )


def _is_stale(context, generation, company_id):
    return context.generation != generation or context.selected_company_id != company_id


def build_dashboard(context, max_workers=None, app=None):
    """
    Fetch and aggregate dashboard statistics for the context's active company.

    No active company gives all-zero statistics. Returns None if the active
    company changed while the fetches were in flight.
    """
    company_id = context.selected_company_id
    if company_id is None:
        return DashboardStats()
    generation = context.generation

    results = fan_out({
        'sales_orders': lambda: SalesOrderRepository().fetch(company_id, ('total',)),
        'expenses': lambda: ExpenseRepository().fetch(company_id, ('total',)),
        'invoices': lambda: InvoiceRepository().fetch(company_id, ('total', 'status')),
        'purchase_orders': lambda: PurchaseOrderRepository().fetch(
            company_id, ('status',), status='pending'),
        'sale_receipts': lambda: SaleReceiptRepository().fetch(company_id, ('total',)),
    }, max_workers=max_workers, app=app)

    if _is_stale(context, generation, company_id):
        logger.debug(f"Discarding stale dashboard pass for company {company_id}")
        return None
    return compute_dashboard(**results)


def build_profit_loss(context, max_workers=None, app=None):
    """
    Fetch and aggregate the profit & loss report for the context's active company.

    No active company gives an all-zero report. Returns None if the active
    company changed while the fetches were in flight.
    """
    company_id = context.selected_company_id
    if company_id is None:
        return ProfitLossReport()
    generation = context.generation

    results = fan_out({
        'sales_orders': lambda: SalesOrderRepository().fetch(company_id, ('total',)),
        'expenses': lambda: ExpenseRepository().fetch(company_id, ('total',)),
        'sale_receipts': lambda: SaleReceiptRepository().fetch(company_id, ('total',)),
        'invoices': lambda: InvoiceRepository().fetch(company_id, ('total', 'paid_amount')),
    }, max_workers=max_workers, app=app)

    if _is_stale(context, generation, company_id):
        logger.debug(f"Discarding stale report pass for company {company_id}")
        return None
    return compute_profit_loss(**results)
