"""
Financial Reports Routes
Profit & loss statement for the active company and its exports
"""

from flask import Blueprint, request, send_file
from flask_login import login_required

from ledgerdesk.services.aggregation import build_profit_loss
from ledgerdesk.utils.company_context import company_required
from ledgerdesk.utils.currency import format_currency, format_percent
from ledgerdesk.utils.export import export_profit_loss, ExportError
from ledgerdesk.utils.helpers import json_response

bp = Blueprint('reports', __name__)

STALE_REPORT_MESSAGE = 'Active company changed, reload the report'


@bp.route('/profit-loss')
@login_required
@company_required
def profit_loss(context):
    """Profit & loss figures"""
    report = build_profit_loss(context)
    if report is None:
        return json_response({'error': STALE_REPORT_MESSAGE}, 409)

    return json_response({
        'company': context.selected_company.to_dict(),
        'report': report.to_dict(),
        'display': {
            'total_revenue': format_currency(report.total_revenue),
            'total_expenses': format_currency(report.total_expenses),
            'gross_profit': format_currency(report.gross_profit),
            'net_profit': format_currency(report.net_profit),
            'profit_margin': format_percent(report.profit_margin),
        },
    })


@bp.route('/profit-loss/export')
@login_required
@company_required
def export_profit_loss_report(context):
    """Download the profit & loss statement as PDF or Excel"""
    format_type = request.args.get('format', 'pdf')
    report = build_profit_loss(context)
    if report is None:
        return json_response({'error': STALE_REPORT_MESSAGE}, 409)

    try:
        output, filename, mimetype = export_profit_loss(
            report, context.selected_company.name, format_type)
    except ExportError as e:
        return json_response({'error': str(e)}, 400)

    return send_file(output, mimetype=mimetype, as_attachment=True, download_name=filename)
