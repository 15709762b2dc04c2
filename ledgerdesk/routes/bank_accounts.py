"""
Bank Account Routes
Bank accounts of the active company
"""

from flask import Blueprint, request
from flask_login import login_required, current_user

from ledgerdesk.services.repositories import BankAccountRepository
from ledgerdesk.utils.company_context import company_required
from ledgerdesk.utils.helpers import request_data, missing_fields, json_response
from ledgerdesk.utils.notifications import notify_success

bp = Blueprint('bank_accounts', __name__)

REQUIRED_FIELDS = ('account_name', 'account_number', 'bank_name')


def _listing(context, **extra):
    accounts = BankAccountRepository().list(context.selected_company_id)
    payload = {
        'company': context.selected_company.to_dict(),
        'items': [account.to_dict() for account in accounts],
    }
    payload.update(extra)
    return payload


def _company_account(context, account_id):
    """Account by id, only if it belongs to the active company"""
    for account in BankAccountRepository().list(context.selected_company_id):
        if account.id == account_id:
            return account
    return None


@bp.route('/', methods=['GET', 'POST'])
@login_required
@company_required
def index(context):
    """List or add bank accounts"""
    if request.method == 'POST':
        data = request_data()
        missing = missing_fields(data, REQUIRED_FIELDS)
        if missing:
            return json_response({'error': f"Missing required fields: {', '.join(missing)}"}, 400)

        account = BankAccountRepository().create(context.selected_company_id, current_user.id, data)
        if account is None:
            return json_response({'error': 'Error creating bank account'}, 500)
        notify_success('Bank account added successfully')
        return json_response(_listing(context, account=account.to_dict()), 201)

    return json_response(_listing(context))


@bp.route('/<int:account_id>/edit', methods=['POST'])
@login_required
@company_required
def edit(context, account_id):
    """Update a bank account"""
    if _company_account(context, account_id) is None:
        return json_response({'error': 'Bank account not found'}, 404)

    data = request_data()
    blank = [name for name in REQUIRED_FIELDS if name in data and missing_fields(data, (name,))]
    if blank:
        return json_response({'error': f"Missing required fields: {', '.join(blank)}"}, 400)

    account = BankAccountRepository().update(account_id, data)
    if account is None:
        return json_response({'error': 'Error updating bank account'}, 500)
    notify_success('Bank account updated successfully')
    return json_response(_listing(context, account=account.to_dict()))


@bp.route('/<int:account_id>/delete', methods=['POST'])
@login_required
@company_required
def delete(context, account_id):
    """Delete a bank account"""
    if _company_account(context, account_id) is None:
        return json_response({'error': 'Bank account not found'}, 404)

    if not BankAccountRepository().delete(account_id):
        return json_response({'error': 'Error deleting bank account'}, 500)
    notify_success('Bank account deleted successfully')
    return json_response(_listing(context))
