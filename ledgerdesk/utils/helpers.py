"""
Helper Utilities
Common utility functions used across the application
"""

from datetime import date, timedelta
from flask import request, jsonify, get_flashed_messages


def request_data():
    """
    Submitted fields of the current request

    Returns:
        dict: JSON body if one was sent, form fields otherwise
    """
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def missing_fields(data, required):
    """
    Names of required fields that are absent or blank

    Args:
        data: Submitted fields
        required: Iterable of field names

    Returns:
        list: Field names that need a value
    """
    missing = []
    for name in required:
        value = data.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return missing


def json_response(payload, status=200):
    """jsonify payload and attach notifications raised while handling the request"""
    messages = get_flashed_messages(with_categories=True)
    if messages:
        payload = dict(payload)
        payload['notifications'] = [
            {'category': category, 'message': message} for category, message in messages
        ]
    return jsonify(payload), status


def create_sample_data(user, company_name='Demo Trading Ltd'):
    """
    Create a sample company with a few records of each kind for a user

    Returns:
        Company: the new company, or None if the store rejected it
    """
    from ledgerdesk.services.repositories import (CompanyRepository, BankAccountRepository,
                                                  PurchaseOrderRepository, SalesOrderRepository,
                                                  InvoiceRepository, SaleReceiptRepository,
                                                  ExpenseRepository)

    company = CompanyRepository().create(user.id, {
        'name': company_name,
        'registration_number': 'PVT-2024-0001',
        'address': 'Moi Avenue, Nairobi',
        'phone': '+254 700 000000',
        'email': 'accounts@demo.example',
    })
    if company is None:
        return None

    today = date.today()
    BankAccountRepository().create(company.id, user.id, {
        'account_name': 'Operating Account', 'account_number': '0102030405',
        'bank_name': 'Equity Bank', 'branch': 'Moi Avenue', 'balance': '250000',
    })
    PurchaseOrderRepository().create(company.id, user.id, {
        'po_number': 'PO-0001', 'supplier_name': 'Nairobi Office Supplies',
        'order_date': today.isoformat(), 'subtotal': '12000', 'tax': '1920',
    })
    SalesOrderRepository().create(company.id, user.id, {
        'so_number': 'SO-0001', 'customer_name': 'Kilimani Traders',
        'order_date': today.isoformat(), 'subtotal': '45000', 'tax': '7200',
    })
    InvoiceRepository().create(company.id, user.id, {
        'invoice_number': 'INV-0001', 'customer_name': 'Westlands Retail',
        'invoice_date': today.isoformat(), 'due_date': (today + timedelta(days=30)).isoformat(),
        'subtotal': '30000', 'tax': '4800',
    })
    SaleReceiptRepository().create(company.id, user.id, {
        'receipt_number': 'RCT-0001', 'customer_name': 'Walk-in Customer',
        'sale_date': today.isoformat(), 'payment_method': 'mpesa',
        'subtotal': '3500', 'tax': '560',
    })
    ExpenseRepository().create(company.id, user.id, {
        'expense_number': 'EXP-0001', 'vendor': 'Kenya Power', 'category': 'utilities',
        'expense_date': today.isoformat(), 'payment_method': 'mpesa',
        'amount': '8000', 'tax': '1280', 'description': 'Electricity bill',
    })
    return company
