"""
Company Management Routes
Create, edit, delete and switch between the companies a user keeps books for
"""

import logging
from flask import Blueprint, current_app, request
from flask_login import login_required, current_user

from ledgerdesk.services.repositories import CompanyRepository
from ledgerdesk.utils.company_context import get_company_context
from ledgerdesk.utils.helpers import request_data, json_response
from ledgerdesk.utils.notifications import notify_success

logger = logging.getLogger(__name__)

bp = Blueprint('companies', __name__)


def _context_payload(context, **extra):
    payload = context.to_dict()
    payload.update(extra)
    return payload


@bp.route('/', methods=['GET', 'POST'])
@login_required
def index():
    """List the user's companies or create a new one"""
    context = get_company_context()

    if request.method == 'POST':
        data = request_data()
        name = (data.get('name') or '').strip()
        if not name:
            return json_response({'error': 'Company name is required'}, 400)

        company = CompanyRepository().create(
            current_user.id, data,
            default_currency=current_app.config.get('DEFAULT_COMPANY_CURRENCY', 'KES'))
        if company is None:
            return json_response({'error': 'Error creating company'}, 500)

        notify_success(f'Company "{company.name}" created successfully')
        context.refresh()
        return json_response(_context_payload(context, company=company.to_dict()), 201)

    return json_response(_context_payload(context))


@bp.route('/<int:company_id>/edit', methods=['POST'])
@login_required
def edit(company_id):
    """Update a company's details"""
    context = get_company_context()
    if context.find(company_id) is None:
        return json_response({'error': 'Company not found'}, 404)

    data = request_data()
    if 'name' in data and not (data.get('name') or '').strip():
        return json_response({'error': 'Company name is required'}, 400)

    company = CompanyRepository().update(company_id, data)
    if company is None:
        return json_response({'error': 'Error updating company'}, 500)

    notify_success(f'Company "{company.name}" updated successfully')
    context.refresh()
    return json_response(_context_payload(context, company=company.to_dict()))


@bp.route('/<int:company_id>/delete', methods=['POST'])
@login_required
def delete(company_id):
    """Delete a company and everything recorded under it"""
    context = get_company_context()
    company = context.find(company_id)
    if company is None:
        return json_response({'error': 'Company not found'}, 404)

    name = company.name
    if not CompanyRepository().delete(company_id):
        return json_response({'error': 'Error deleting company'}, 500)

    notify_success(f'Company "{name}" deleted successfully')
    context.refresh()
    return json_response(_context_payload(context))


@bp.route('/select/<int:company_id>', methods=['POST'])
@login_required
def select(company_id):
    """Make one of the user's companies the active one"""
    context = get_company_context()
    if not context.select_company(company_id):
        return json_response({'error': 'Company not found'}, 404)

    logger.info(f"User {current_user.id} switched to company {company_id}")
    return json_response(_context_payload(context))

