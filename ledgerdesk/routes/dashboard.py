"""
Dashboard Routes
Headline figures for the active company
"""

from flask import Blueprint
from flask_login import login_required

from ledgerdesk.services.aggregation import build_dashboard
from ledgerdesk.utils.company_context import company_required
from ledgerdesk.utils.currency import format_currency
from ledgerdesk.utils.helpers import json_response

bp = Blueprint('dashboard', __name__)


@bp.route('/')
@login_required
@company_required
def index(context):
    """Dashboard statistics, recomputed on every request"""
    stats = build_dashboard(context)
    if stats is None:
        return json_response({'error': 'Active company changed, reload the dashboard'}, 409)

    return json_response({
        'company': context.selected_company.to_dict(),
        'stats': stats.to_dict(),
        'display': {
            'total_sales': format_currency(stats.total_sales),
            'total_expenses': format_currency(stats.total_expenses),
            'profit': format_currency(stats.profit),
        },
    })
