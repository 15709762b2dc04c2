"""
Database Models
SQLAlchemy ORM models for companies and their bookkeeping records
"""

from datetime import datetime, date
from decimal import Decimal
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.orm import declared_attr
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

db = SQLAlchemy()


# Known status values per record kind. Any string may be stored; these
# only document what the application itself writes and displays.
PURCHASE_ORDER_STATUSES = ('pending', 'approved', 'received', 'cancelled')
SALES_ORDER_STATUSES = ('pending', 'confirmed', 'shipped', 'delivered', 'cancelled')
INVOICE_STATUSES = ('pending', 'partial', 'paid', 'overdue', 'cancelled')
EXPENSE_STATUSES = ('pending', 'approved', 'paid', 'rejected')
PAYMENT_METHODS = ('cash', 'mpesa', 'card', 'bank_transfer')
EXPENSE_CATEGORIES = ('office', 'travel', 'utilities', 'supplies', 'other')


def _money(value):
    """Convert a Numeric column value to float for JSON output"""
    return float(value if value is not None else Decimal('0'))


def _iso(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class User(UserMixin, db.Model):
    """Account owning zero or more companies"""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    full_name = db.Column(db.String(128), nullable=False, default='')
    password_hash = db.Column(db.String(255), nullable=False)
    is_active = db.Column(db.Boolean, default=True)
    last_login = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    companies = db.relationship('Company', backref='owner',
                                cascade='all, delete-orphan')
    preference = db.relationship('UserPreference', backref='user', uselist=False,
                                 cascade='all, delete-orphan')

    def set_password(self, password):
        """Hash and set password"""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Verify password"""
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'full_name': self.full_name,
        }

    def __repr__(self):
        return f'<User {self.email}>'


class Company(db.Model):
    """A business whose books are kept in the application"""
    __tablename__ = 'companies'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'),
                        nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    registration_number = db.Column(db.String(64))
    address = db.Column(db.Text)
    phone = db.Column(db.String(32))
    email = db.Column(db.String(120))
    currency = db.Column(db.String(8), nullable=False, default='KES')
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Deleting a company removes everything recorded under it
    bank_accounts = db.relationship('BankAccount', backref='company',
                                    cascade='all, delete-orphan')
    purchase_orders = db.relationship('PurchaseOrder', backref='company',
                                      cascade='all, delete-orphan')
    sales_orders = db.relationship('SalesOrder', backref='company',
                                   cascade='all, delete-orphan')
    invoices = db.relationship('Invoice', backref='company',
                               cascade='all, delete-orphan')
    sale_receipts = db.relationship('SaleReceipt', backref='company',
                                    cascade='all, delete-orphan')
    expenses = db.relationship('Expense', backref='company',
                               cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'registration_number': self.registration_number,
            'address': self.address,
            'phone': self.phone,
            'email': self.email,
            'currency': self.currency,
            'created_at': _iso(self.created_at),
        }

    def __repr__(self):
        return f'<Company {self.name}>'


class UserPreference(db.Model):
    """Per-user settings; one row per user, written by upsert on user_id"""
    __tablename__ = 'user_preferences'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'),
                        unique=True, nullable=False)
    selected_company_id = db.Column(db.Integer,
                                    db.ForeignKey('companies.id', ondelete='SET NULL'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<UserPreference user={self.user_id} company={self.selected_company_id}>'


class BankAccount(db.Model):
    """Bank account held by a company"""
    __tablename__ = 'bank_accounts'

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey('companies.id', ondelete='CASCADE'),
                           nullable=False, index=True)
    account_name = db.Column(db.String(255), nullable=False)
    account_number = db.Column(db.String(64), nullable=False)
    bank_name = db.Column(db.String(255), nullable=False)
    branch = db.Column(db.String(255))
    balance = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'company_id': self.company_id,
            'account_name': self.account_name,
            'account_number': self.account_number,
            'bank_name': self.bank_name,
            'branch': self.branch,
            'balance': _money(self.balance),
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }

    def __repr__(self):
        return f'<BankAccount {self.bank_name} {self.account_number}>'


class CompanyRecordMixin:
    """Columns shared by every transactional record: creator, scope and timestamps"""

    id = db.Column(db.Integer, primary_key=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @declared_attr
    def company_id(cls):
        return db.Column(db.Integer, db.ForeignKey('companies.id', ondelete='CASCADE'),
                         nullable=False, index=True)

    @declared_attr
    def user_id(cls):
        return db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)

    def _base_dict(self):
        return {
            'id': self.id,
            'company_id': self.company_id,
            'user_id': self.user_id,
            'created_at': _iso(self.created_at),
        }


class PurchaseOrder(CompanyRecordMixin, db.Model):
    """Order placed with a supplier"""
    __tablename__ = 'purchase_orders'

    po_number = db.Column(db.String(64), nullable=False)
    supplier_name = db.Column(db.String(255), nullable=False)
    supplier_contact = db.Column(db.String(255))
    order_date = db.Column(db.Date, nullable=False, default=date.today)
    delivery_date = db.Column(db.Date)
    items = db.Column(db.JSON, default=list)
    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    tax = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    status = db.Column(db.String(32), nullable=False, default='pending')
    notes = db.Column(db.Text)

    def to_dict(self):
        data = self._base_dict()
        data.update({
            'po_number': self.po_number,
            'supplier_name': self.supplier_name,
            'supplier_contact': self.supplier_contact,
            'order_date': _iso(self.order_date),
            'delivery_date': _iso(self.delivery_date),
            'items': self.items or [],
            'subtotal': _money(self.subtotal),
            'tax': _money(self.tax),
            'total': _money(self.total),
            'status': self.status,
            'notes': self.notes,
        })
        return data

    def __repr__(self):
        return f'<PurchaseOrder {self.po_number}>'


class SalesOrder(CompanyRecordMixin, db.Model):
    """Order received from a customer"""
    __tablename__ = 'sales_orders'

    so_number = db.Column(db.String(64), nullable=False)
    customer_name = db.Column(db.String(255), nullable=False)
    customer_contact = db.Column(db.String(255))
    order_date = db.Column(db.Date, nullable=False, default=date.today)
    delivery_date = db.Column(db.Date)
    items = db.Column(db.JSON, default=list)
    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    tax = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    status = db.Column(db.String(32), nullable=False, default='pending')
    notes = db.Column(db.Text)

    def to_dict(self):
        data = self._base_dict()
        data.update({
            'so_number': self.so_number,
            'customer_name': self.customer_name,
            'customer_contact': self.customer_contact,
            'order_date': _iso(self.order_date),
            'delivery_date': _iso(self.delivery_date),
            'items': self.items or [],
            'subtotal': _money(self.subtotal),
            'tax': _money(self.tax),
            'total': _money(self.total),
            'status': self.status,
            'notes': self.notes,
        })
        return data

    def __repr__(self):
        return f'<SalesOrder {self.so_number}>'


class Invoice(CompanyRecordMixin, db.Model):
    """Customer invoice with partial payment tracking"""
    __tablename__ = 'invoices'

    invoice_number = db.Column(db.String(64), nullable=False)
    customer_name = db.Column(db.String(255), nullable=False)
    customer_contact = db.Column(db.String(255))
    invoice_date = db.Column(db.Date, nullable=False, default=date.today)
    due_date = db.Column(db.Date)
    items = db.Column(db.JSON, default=list)
    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    tax = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    paid_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    status = db.Column(db.String(32), nullable=False, default='pending')
    notes = db.Column(db.Text)

    def to_dict(self):
        data = self._base_dict()
        data.update({
            'invoice_number': self.invoice_number,
            'customer_name': self.customer_name,
            'customer_contact': self.customer_contact,
            'invoice_date': _iso(self.invoice_date),
            'due_date': _iso(self.due_date),
            'items': self.items or [],
            'subtotal': _money(self.subtotal),
            'tax': _money(self.tax),
            'total': _money(self.total),
            'paid_amount': _money(self.paid_amount),
            'status': self.status,
            'notes': self.notes,
        })
        return data

    def __repr__(self):
        return f'<Invoice {self.invoice_number}>'


class SaleReceipt(CompanyRecordMixin, db.Model):
    """Settled sale; receipts carry no status"""
    __tablename__ = 'sale_receipts'

    receipt_number = db.Column(db.String(64), nullable=False)
    customer_name = db.Column(db.String(255), nullable=False)
    sale_date = db.Column(db.Date, nullable=False, default=date.today)
    payment_method = db.Column(db.String(32), nullable=False, default='cash')
    items = db.Column(db.JSON, default=list)
    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    tax = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    notes = db.Column(db.Text)

    def to_dict(self):
        data = self._base_dict()
        data.update({
            'receipt_number': self.receipt_number,
            'customer_name': self.customer_name,
            'sale_date': _iso(self.sale_date),
            'payment_method': self.payment_method,
            'items': self.items or [],
            'subtotal': _money(self.subtotal),
            'tax': _money(self.tax),
            'total': _money(self.total),
            'notes': self.notes,
        })
        return data

    def __repr__(self):
        return f'<SaleReceipt {self.receipt_number}>'


class Expense(CompanyRecordMixin, db.Model):
    """Company expense"""
    __tablename__ = 'expenses'

    expense_number = db.Column(db.String(64), nullable=False)
    vendor = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(64), nullable=False, default='office')
    expense_date = db.Column(db.Date, nullable=False, default=date.today)
    payment_method = db.Column(db.String(32), nullable=False, default='cash')
    amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    tax = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    status = db.Column(db.String(32), nullable=False, default='pending')
    description = db.Column(db.Text)
    receipt_url = db.Column(db.String(512))

    def to_dict(self):
        data = self._base_dict()
        data.update({
            'expense_number': self.expense_number,
            'vendor': self.vendor,
            'category': self.category,
            'expense_date': _iso(self.expense_date),
            'payment_method': self.payment_method,
            'amount': _money(self.amount),
            'tax': _money(self.tax),
            'total': _money(self.total),
            'status': self.status,
            'description': self.description,
            'receipt_url': self.receipt_url,
        })
        return data

    def __repr__(self):
        return f'<Expense {self.expense_number} - {self.total}>'
