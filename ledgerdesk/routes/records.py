"""
Record Routes
List, create and export the transactional records of the active company.

Purchase orders, sales orders, invoices, sale receipts and expenses share
one set of views; each kind gets its own blueprint built by make_blueprint().
"""

from flask import Blueprint, request, send_file
from flask_login import login_required, current_user

from ledgerdesk.services.repositories import REPOSITORIES
from ledgerdesk.utils.company_context import company_required
from ledgerdesk.utils.export import export_records, ExportError
from ledgerdesk.utils.helpers import request_data, missing_fields, json_response
from ledgerdesk.utils.notifications import notify_success

# kind -> (url prefix, required form fields)
RECORD_KINDS = {
    'purchase_orders': ('/purchase-orders', ('po_number', 'supplier_name', 'order_date', 'subtotal')),
    'sales_orders': ('/sales-orders', ('so_number', 'customer_name', 'order_date', 'subtotal')),
    'invoices': ('/invoices', ('invoice_number', 'customer_name', 'invoice_date', 'subtotal')),
    'sale_receipts': ('/sale-receipts', ('receipt_number', 'customer_name', 'sale_date', 'subtotal')),
    'expenses': ('/expenses', ('expense_number', 'vendor', 'expense_date', 'amount')),
}


def make_blueprint(kind, required_fields):
    """Blueprint with list/create and export views for one record kind"""
    repository_class = REPOSITORIES[kind]
    bp = Blueprint(kind, __name__)

    def listing(context, **extra):
        records = repository_class().list(context.selected_company_id)
        payload = {
            'company': context.selected_company.to_dict(),
            'items': [record.to_dict() for record in records],
        }
        payload.update(extra)
        return payload

    @bp.route('/', methods=['GET', 'POST'])
    @login_required
    @company_required
    def index(context):
        if request.method == 'POST':
            data = request_data()
            missing = missing_fields(data, required_fields)
            if missing:
                return json_response(
                    {'error': f"Missing required fields: {', '.join(missing)}"}, 400)

            repository = repository_class()
            record = repository.create(context.selected_company_id, current_user.id, data)
            if record is None:
                return json_response({'error': f'Error creating {repository.singular}'}, 500)
            notify_success(f'{repository.singular.capitalize()} created successfully')
            return json_response(listing(context, record=record.to_dict()), 201)

        return json_response(listing(context))

    @bp.route('/export')
    @login_required
    @company_required
    def export(context):
        format_type = request.args.get('format', 'pdf')
        records = repository_class().list(context.selected_company_id)
        try:
            output, filename, mimetype = export_records(
                kind, records, context.selected_company.name, format_type)
        except ExportError as e:
            return json_response({'error': str(e)}, 400)

        return send_file(output, mimetype=mimetype, as_attachment=True, download_name=filename)

    return bp


def record_blueprints():
    """(url prefix, blueprint) for every record kind"""
    return [(url_prefix, make_blueprint(kind, required))
            for kind, (url_prefix, required) in RECORD_KINDS.items()]
