"""
Export utilities for generating Excel and PDF downloads of records and reports
"""

from io import BytesIO
from datetime import date, datetime
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from openpyxl.utils import get_column_letter

from ledgerdesk.utils.currency import format_currency, format_percent
from ledgerdesk.utils.pdf_utils import generate_table_pdf

EXCEL_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
PDF_MIMETYPE = 'application/pdf'
EXPORT_FORMATS = ('pdf', 'excel')


class ExportError(ValueError):
    """Raised when there is nothing to export or the format is unknown"""


def export_to_excel(data, columns, title="Report", sheet_name="Data", subtitle=None):
    """
    Export data to Excel format

    Args:
        data: List of dictionaries or list of lists containing the data
        columns: List of column headers or dict mapping keys to display names
        title: Report title for the header
        sheet_name: Name of the worksheet
        subtitle: Optional line under the title (company name)

    Returns:
        BytesIO object containing the Excel file
    """
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name[:31]

    # Styles
    header_font = Font(bold=True, color="FFFFFF", size=11)
    header_fill = PatternFill(start_color="3B82F6", end_color="3B82F6", fill_type="solid")
    title_font = Font(bold=True, size=14)
    date_font = Font(italic=True, size=10, color="666666")
    thin_border = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )

    if isinstance(columns, dict):
        headers = list(columns.values())
        keys = list(columns.keys())
    else:
        headers = list(columns)
        keys = list(columns)

    # Title block: title, company, generation date
    banner = [(title, title_font)]
    if subtitle:
        banner.append((subtitle, Font(bold=True, size=11)))
    banner.append((f"Generated: {datetime.now().strftime('%Y-%m-%d')}", date_font))
    for row_idx, (text, font) in enumerate(banner, 1):
        if len(headers) > 1:
            ws.merge_cells(start_row=row_idx, start_column=1, end_row=row_idx, end_column=len(headers))
        cell = ws.cell(row=row_idx, column=1, value=text)
        cell.font = font
        cell.alignment = Alignment(horizontal='center')

    # Headers
    header_row = len(banner) + 2
    for col_idx, header in enumerate(headers, 1):
        cell = ws.cell(row=header_row, column=col_idx, value=header)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal='center')
        cell.border = thin_border

    # Data rows
    for row_idx, row_data in enumerate(data, header_row + 1):
        for col_idx, key in enumerate(keys, 1):
            if isinstance(row_data, dict):
                value = row_data.get(key, '')
            else:
                value = row_data[col_idx - 1] if col_idx - 1 < len(row_data) else ''

            cell = ws.cell(row=row_idx, column=col_idx, value=value)
            cell.border = thin_border

            # Format numbers
            if isinstance(value, (int, float)):
                cell.alignment = Alignment(horizontal='right')
                cell.number_format = '#,##0.00'
            else:
                cell.alignment = Alignment(horizontal='left')

    # Adjust column widths; the merged banner rows are left out
    for col_idx in range(1, len(headers) + 1):
        column_letter = get_column_letter(col_idx)
        max_length = 0
        for row in ws.iter_rows(min_row=header_row, min_col=col_idx, max_col=col_idx):
            value = row[0].value
            if value is not None:
                max_length = max(max_length, len(str(value)))
        ws.column_dimensions[column_letter].width = min(max_length + 2, 50)

    # Save to BytesIO
    output = BytesIO()
    wb.save(output)
    output.seek(0)
    return output


def format_date(dt, format_str='%Y-%m-%d'):
    """Format a date or datetime object"""
    if dt:
        if isinstance(dt, str):
            return dt
        return dt.strftime(format_str)
    return ''


def export_filename(stem, format_type, on=None):
    """File name embedding the export date, e.g. Invoices_2024-05-01.pdf"""
    on = on or date.today()
    extension = 'pdf' if format_type == 'pdf' else 'xlsx'
    return f"{stem}_{on.isoformat()}.{extension}"


# Column layout per record kind: (attribute, header, kind of value)
RECORD_EXPORTS = {
    'purchase_orders': {
        'title': 'Purchase Orders',
        'stem': 'Purchase_Orders',
        'columns': [
            ('po_number', 'PO #', 'text'),
            ('supplier_name', 'Supplier', 'text'),
            ('order_date', 'Date', 'date'),
            ('status', 'Status', 'text'),
            ('total', 'Total', 'money'),
        ],
    },
    'sales_orders': {
        'title': 'Sales Orders',
        'stem': 'Sales_Orders',
        'columns': [
            ('so_number', 'SO #', 'text'),
            ('customer_name', 'Customer', 'text'),
            ('order_date', 'Date', 'date'),
            ('status', 'Status', 'text'),
            ('total', 'Total', 'money'),
        ],
    },
    'invoices': {
        'title': 'Invoices',
        'stem': 'Invoices',
        'columns': [
            ('invoice_number', 'Invoice #', 'text'),
            ('customer_name', 'Customer', 'text'),
            ('invoice_date', 'Date', 'date'),
            ('due_date', 'Due Date', 'date'),
            ('status', 'Status', 'text'),
            ('total', 'Total', 'money'),
            ('paid_amount', 'Paid', 'money'),
        ],
    },
    'sale_receipts': {
        'title': 'Sale Receipts',
        'stem': 'Sale_Receipts',
        'columns': [
            ('receipt_number', 'Receipt #', 'text'),
            ('customer_name', 'Customer', 'text'),
            ('sale_date', 'Date', 'date'),
            ('payment_method', 'Payment Method', 'text'),
            ('total', 'Total', 'money'),
        ],
    },
    'expenses': {
        'title': 'Expenses',
        'stem': 'Expenses',
        'columns': [
            ('expense_number', 'Expense #', 'text'),
            ('category', 'Category', 'text'),
            ('vendor', 'Vendor', 'text'),
            ('expense_date', 'Date', 'date'),
            ('payment_method', 'Payment', 'text'),
            ('status', 'Status', 'text'),
            ('total', 'Total', 'money'),
        ],
    },
}


def _cell(record, attr, kind, for_pdf):
    value = getattr(record, attr, None)
    if kind == 'money':
        return format_currency(value or 0) if for_pdf else float(value or 0)
    if kind == 'date':
        return format_date(value)
    return value if value is not None else ''


def export_records(kind, records, company_name, format_type='pdf'):
    """
    Export one kind of record list

    Args:
        kind: Key of RECORD_EXPORTS (e.g. 'invoices')
        records: Model rows, newest first
        company_name: Printed under the title
        format_type: 'pdf' (currency-formatted cells) or 'excel' (raw numbers)

    Returns:
        Tuple of (BytesIO, filename, mimetype)
    """
    if kind not in RECORD_EXPORTS:
        raise ExportError(f"Unknown record kind: {kind}")
    if format_type not in EXPORT_FORMATS:
        raise ExportError(f"Unsupported export format: {format_type}")
    if not records:
        raise ExportError("No data to export")

    layout = RECORD_EXPORTS[kind]
    headers = [header for _, header, _ in layout['columns']]
    for_pdf = format_type == 'pdf'
    rows = [[_cell(record, attr, value_kind, for_pdf) for attr, _, value_kind in layout['columns']]
            for record in records]

    if for_pdf:
        output = generate_table_pdf(layout['title'], headers, rows, subtitle=company_name,
                                    wide=len(headers) > 5)
        mimetype = PDF_MIMETYPE
    else:
        output = export_to_excel(rows, headers, title=layout['title'], sheet_name=layout['title'],
                                 subtitle=company_name)
        mimetype = EXCEL_MIMETYPE
    return output, export_filename(layout['stem'], format_type), mimetype


def export_profit_loss(report, company_name, format_type='pdf'):
    """
    Export a ProfitLossReport

    Returns:
        Tuple of (BytesIO, filename, mimetype)
    """
    if format_type not in EXPORT_FORMATS:
        raise ExportError(f"Unsupported export format: {format_type}")

    title = 'Profit & Loss Report'
    lines = [
        ('Total Revenue', report.total_revenue),
        ('Total Expenses', report.total_expenses),
        ('Gross Profit', report.gross_profit),
        ('Net Profit', report.net_profit),
    ]

    if format_type == 'pdf':
        rows = [[label, format_currency(value)] for label, value in lines]
        rows.append(['Profit Margin', format_percent(report.profit_margin)])
        output = generate_table_pdf(title, ['Item', 'Amount'], rows, subtitle=company_name)
        mimetype = PDF_MIMETYPE
    else:
        rows = [[label, float(value)] for label, value in lines]
        rows.append(['Profit Margin (%)', round(float(report.profit_margin), 2)])
        output = export_to_excel(rows, ['Item', 'Amount'], title=title, sheet_name='P&L Report',
                                 subtitle=company_name)
        mimetype = EXCEL_MIMETYPE
    return output, export_filename('Profit_Loss_Report', format_type), mimetype
