"""
Record Repositories
Company-scoped fetch and create for each kind of bookkeeping record
"""

import logging
from datetime import datetime, date
from sqlalchemy.exc import SQLAlchemyError

from ledgerdesk.models import (db, Company, BankAccount, PurchaseOrder, SalesOrder,
                               Invoice, SaleReceipt, Expense)
from ledgerdesk.services.results import FetchResult
from ledgerdesk.utils.currency import parse_amount, ZERO
from ledgerdesk.utils.notifications import notify_error

logger = logging.getLogger(__name__)


def parse_date(value):
    """Parse a YYYY-MM-DD form value; blank or malformed input gives None"""
    if value is None or isinstance(value, date):
        return value
    value = str(value).strip()
    if not value:
        return None
    try:
        return datetime.strptime(value[:10], '%Y-%m-%d').date()
    except ValueError:
        return None


def _clean_text(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class RecordRepository:
    """
    Fetch and create rows of one record kind, always scoped to a company.

    Subclasses declare the model, which form fields they accept, and how the
    total is derived. Store failures are reported through the notifier and
    turn into empty results; nothing here retries.
    """
    model = None
    label = 'records'
    singular = 'record'
    text_fields = ()
    date_fields = ()
    amount_field = 'subtotal'
    default_status = 'pending'
    has_items = True

    def __init__(self, notifier=notify_error):
        self.notifier = notifier

    def _scoped(self, company_id):
        return self.model.query.filter(self.model.company_id == company_id)

    def list(self, company_id):
        """All rows of the company, newest first. No company means no rows."""
        if company_id is None:
            return []
        try:
            return self._scoped(company_id).order_by(
                self.model.created_at.desc(), self.model.id.desc()
            ).all()
        except SQLAlchemyError as e:
            db.session.rollback()
            self.notifier(f'Error loading {self.label}', e)
            return []

    def fetch(self, company_id, columns=('total',), **filters):
        """
        Narrow scoped query used by aggregation passes.

        Returns a FetchResult instead of raising, so a failed fetch can be
        reduced to zero by the caller.
        """
        if company_id is None:
            return FetchResult.ok([])
        try:
            query = db.session.query(*[getattr(self.model, name) for name in columns]).filter(
                self.model.company_id == company_id
            )
            for name, value in filters.items():
                query = query.filter(getattr(self.model, name) == value)
            return FetchResult.ok(query.all())
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error fetching {self.label} for company {company_id}: {e}")
            return FetchResult.failed(e)

    def build(self, company_id, user_id, form):
        """Build an unsaved row from form input with its derived fields filled in"""
        form = form or {}
        values = {}
        for name in self.text_fields:
            text = _clean_text(form.get(name))
            # Blank text leaves the column default in place
            if text is not None:
                values[name] = text
        for name in self.date_fields:
            parsed = parse_date(form.get(name))
            # Blank dates fall back to the column default (today for required ones)
            if parsed is not None:
                values[name] = parsed

        primary = parse_amount(form.get(self.amount_field))
        tax = parse_amount(form.get('tax'))
        values[self.amount_field] = primary
        values['tax'] = tax
        # Line items are stored as given but never summed into the total
        values['total'] = primary + tax

        if self.has_items:
            items = form.get('items')
            values['items'] = items if isinstance(items, list) else []
        if self.default_status is not None:
            values['status'] = self.default_status

        values.update(self.extra_values(form))
        values['company_id'] = company_id
        values['user_id'] = user_id
        return self.model(**values)

    def extra_values(self, form):
        return {}

    def create(self, company_id, user_id, form):
        """
        Insert a row for the company. Returns the row, or None when the store
        rejects it. Callers re-list to see the new row.
        """
        record = self.build(company_id, user_id, form)
        try:
            db.session.add(record)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            self.notifier(f'Error creating {self.singular}', e)
            return None
        logger.info(f"Created {self.singular} {record.id} for company {company_id}")
        return record


class PurchaseOrderRepository(RecordRepository):
    model = PurchaseOrder
    label = 'purchase orders'
    singular = 'purchase order'
    text_fields = ('po_number', 'supplier_name', 'supplier_contact', 'notes')
    date_fields = ('order_date', 'delivery_date')


class SalesOrderRepository(RecordRepository):
    model = SalesOrder
    label = 'sales orders'
    singular = 'sales order'
    text_fields = ('so_number', 'customer_name', 'customer_contact', 'notes')
    date_fields = ('order_date', 'delivery_date')


class InvoiceRepository(RecordRepository):
    model = Invoice
    label = 'invoices'
    singular = 'invoice'
    text_fields = ('invoice_number', 'customer_name', 'customer_contact', 'notes')
    date_fields = ('invoice_date', 'due_date')

    def extra_values(self, form):
        return {'paid_amount': ZERO}


class SaleReceiptRepository(RecordRepository):
    model = SaleReceipt
    label = 'sale receipts'
    singular = 'sale receipt'
    text_fields = ('receipt_number', 'customer_name', 'payment_method', 'notes')
    date_fields = ('sale_date',)
    default_status = None


class ExpenseRepository(RecordRepository):
    model = Expense
    label = 'expenses'
    singular = 'expense'
    text_fields = ('expense_number', 'vendor', 'category', 'payment_method',
                   'description', 'receipt_url')
    date_fields = ('expense_date',)
    amount_field = 'amount'
    has_items = False


class BankAccountRepository(RecordRepository):
    """Bank accounts are plain editable rows: no total, no status"""
    model = BankAccount
    label = 'bank accounts'
    singular = 'bank account'
    text_fields = ('account_name', 'account_number', 'bank_name', 'branch')
    default_status = None
    has_items = False

    def _values(self, form):
        values = {}
        for name in self.text_fields:
            if name in form:
                values[name] = _clean_text(form.get(name))
        if 'balance' in form:
            values['balance'] = parse_amount(form.get('balance'))
        return values

    def build(self, company_id, user_id, form):
        values = self._values(form or {})
        values.setdefault('balance', ZERO)
        return BankAccount(company_id=company_id, **values)

    def update(self, account_id, fields):
        """Update by primary key; the caller got the id from a scoped list"""
        try:
            account = db.session.get(BankAccount, account_id)
            if account is None:
                return None
            for name, value in self._values(fields or {}).items():
                setattr(account, name, value)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            self.notifier('Error updating bank account', e)
            return None
        return account

    def delete(self, account_id):
        """Delete a single account by primary key"""
        try:
            account = db.session.get(BankAccount, account_id)
            if account is None:
                return False
            db.session.delete(account)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            self.notifier('Error deleting bank account', e)
            return False
        return True


class CompanyRepository:
    """Companies belong to users rather than to a company scope"""
    fields = ('name', 'registration_number', 'address', 'phone', 'email', 'currency')

    def __init__(self, notifier=notify_error):
        self.notifier = notifier

    def _values(self, form):
        values = {}
        for name in self.fields:
            if name in form:
                values[name] = _clean_text(form.get(name))
        if values.get('currency') is None:
            values.pop('currency', None)
        return values

    def list_for_user(self, user_id):
        try:
            return Company.query.filter_by(user_id=user_id).order_by(
                Company.created_at.desc(), Company.id.desc()
            ).all()
        except SQLAlchemyError as e:
            db.session.rollback()
            self.notifier('Error loading companies', e)
            return []

    def create(self, user_id, form, default_currency='KES'):
        values = self._values(form or {})
        values.setdefault('currency', default_currency)
        company = Company(user_id=user_id, **values)
        try:
            db.session.add(company)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            self.notifier('Error creating company', e)
            return None
        logger.info(f"Created company {company.id} for user {user_id}")
        return company

    def update(self, company_id, form):
        try:
            company = db.session.get(Company, company_id)
            if company is None:
                return None
            for name, value in self._values(form or {}).items():
                setattr(company, name, value)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            self.notifier('Error updating company', e)
            return None
        return company

    def delete(self, company_id):
        """Delete a company together with every record kept under it"""
        try:
            company = db.session.get(Company, company_id)
            if company is None:
                return False
            db.session.delete(company)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            self.notifier('Error deleting company', e)
            return False
        logger.info(f"Deleted company {company_id} and its records")
        return True


REPOSITORIES = {
    'purchase_orders': PurchaseOrderRepository,
    'sales_orders': SalesOrderRepository,
    'invoices': InvoiceRepository,
    'sale_receipts': SaleReceiptRepository,
    'expenses': ExpenseRepository,
    'bank_accounts': BankAccountRepository,
}
