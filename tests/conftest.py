"""
Shared pytest fixtures and configuration for all tests.

Provides common fixtures for Flask application testing, database sessions,
authentication, and test data initialization.
"""

import pytest
import sys
import os
from decimal import Decimal
from datetime import date, datetime

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ledgerdesk import create_app
from ledgerdesk.models import db


@pytest.fixture(scope='session')
def app_factory():
    """Factory fixture for creating test app instances."""
    def _create_app(config='testing'):
        app = create_app(config)
        app.config['WTF_CSRF_ENABLED'] = False
        app.config['TESTING'] = True
        app.config['SQLALCHEMY_DATABASE_URI'] = 'sqlite:///:memory:'
        app.config['AGGREGATION_MAX_WORKERS'] = 1
        return app
    return _create_app


@pytest.fixture(scope='session')
def app(app_factory):
    """Create application for testing session."""
    return app_factory()


@pytest.fixture(scope='function')
def fresh_app(app_factory):
    """Create a fresh application for each test with clean database."""
    app = app_factory()

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(fresh_app):
    """Create a test client for each test."""
    return fresh_app.test_client()


@pytest.fixture(scope='function')
def db_session(fresh_app):
    """Provide a database session for testing."""
    with fresh_app.app_context():
        yield db.session
        db.session.rollback()


@pytest.fixture(scope='function')
def init_database(fresh_app):
    """
    Initialize database with test data.

    Creates:
    - Users (owner, other, inactive, no companies)
    - Companies for owner (Acme Holdings older, Beta Traders newer)
    - A company for the other user (Gamma Ltd)
    - Bank account, sales order, expense, invoice and receipt under Acme
    """
    from ledgerdesk.models import (
        User, Company, BankAccount, SalesOrder, Expense, Invoice, SaleReceipt
    )

    with fresh_app.app_context():
        owner = User(email='owner@test.com', full_name='Owner User', is_active=True)
        owner.set_password('owner123')
        other = User(email='other@test.com', full_name='Other User', is_active=True)
        other.set_password('other123')
        inactive_user = User(email='inactive@test.com', full_name='Inactive User', is_active=False)
        inactive_user.set_password('inactive123')
        newcomer = User(email='newcomer@test.com', full_name='New User', is_active=True)
        newcomer.set_password('newcomer123')
        db.session.add_all([owner, other, inactive_user, newcomer])
        db.session.flush()

        # Explicit timestamps so "newest first" is deterministic
        acme = Company(user_id=owner.id, name='Acme Holdings', currency='KES',
                       created_at=datetime(2024, 1, 10, 9, 0, 0))
        beta = Company(user_id=owner.id, name='Beta Traders', currency='KES',
                       created_at=datetime(2024, 3, 5, 9, 0, 0))
        gamma = Company(user_id=other.id, name='Gamma Ltd', currency='KES',
                        created_at=datetime(2024, 2, 1, 9, 0, 0))
        db.session.add_all([acme, beta, gamma])
        db.session.flush()

        db.session.add(BankAccount(
            company_id=acme.id,
            account_name='Operating Account',
            account_number='0011223344',
            bank_name='Equity Bank',
            balance=Decimal('50000.00')
        ))
        db.session.add(SalesOrder(
            company_id=acme.id, user_id=owner.id,
            so_number='SO-001', customer_name='Kilimani Traders',
            order_date=date(2024, 4, 1),
            subtotal=Decimal('1000.00'), tax=Decimal('200.00'), total=Decimal('1200.00'),
            status='pending'
        ))
        db.session.add(Expense(
            company_id=acme.id, user_id=owner.id,
            expense_number='EXP-001', vendor='Kenya Power', category='utilities',
            expense_date=date(2024, 4, 2), payment_method='mpesa',
            amount=Decimal('500.00'), tax=Decimal('0.00'), total=Decimal('500.00'),
            status='pending'
        ))
        db.session.add(Invoice(
            company_id=acme.id, user_id=owner.id,
            invoice_number='INV-001', customer_name='Westlands Retail',
            invoice_date=date(2024, 4, 3),
            subtotal=Decimal('1000.00'), tax=Decimal('0.00'), total=Decimal('1000.00'),
            paid_amount=Decimal('0.00'), status='unpaid'
        ))
        db.session.add(SaleReceipt(
            company_id=gamma.id, user_id=other.id,
            receipt_number='RCT-001', customer_name='Walk-in Customer',
            sale_date=date(2024, 4, 4), payment_method='cash',
            subtotal=Decimal('300.00'), tax=Decimal('0.00'), total=Decimal('300.00')
        ))

        db.session.commit()

        yield
        # Cleanup is handled by fresh_app fixture


def login(client, email, password):
    return client.post('/auth/login', json={'email': email, 'password': password})


@pytest.fixture
def auth_owner(client, init_database):
    """
    Login as the owner of Acme Holdings and Beta Traders and return authenticated client.
    """
    login(client, 'owner@test.com', 'owner123')
    return client


@pytest.fixture
def auth_other(client, init_database):
    """Login as the owner of Gamma Ltd and return authenticated client."""
    login(client, 'other@test.com', 'other123')
    return client


@pytest.fixture
def auth_newcomer(client, init_database):
    """Login as a user without companies and return authenticated client."""
    login(client, 'newcomer@test.com', 'newcomer123')
    return client


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "smoke: marks tests as smoke tests"
    )
    config.addinivalue_line(
        "markers", "edge_case: marks tests as edge case tests"
    )
    config.addinivalue_line(
        "markers", "auth: marks tests as authentication tests"
    )


def pytest_collection_modifyitems(config, items):
    """Automatically add markers based on test class/function names."""
    for item in items:
        # Route tests go through the full application stack
        if 'test_routes_' in item.nodeid:
            item.add_marker(pytest.mark.integration)

        # Edge case tests
        if 'edge' in item.name.lower() or 'EdgeCase' in item.nodeid:
            item.add_marker(pytest.mark.edge_case)

        if 'auth' in item.name.lower() or 'login' in item.name.lower():
            item.add_marker(pytest.mark.auth)
