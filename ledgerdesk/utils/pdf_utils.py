"""
PDF Generation Utilities
Functions for rendering record lists and reports as PDF documents
"""

from io import BytesIO
from xml.sax.saxutils import escape
from datetime import datetime
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer


def generate_table_pdf(title, headers, rows, subtitle=None, wide=False):
    """
    Generate a PDF with a title block and one table

    Args:
        title: Document title
        headers: List of column headers
        rows: List of row value lists, already formatted for display
        subtitle: Optional line under the title (company name)
        wide: Use landscape pages for tables with many columns

    Returns:
        BytesIO object containing the PDF
    """
    output = BytesIO()
    pagesize = landscape(A4) if wide else A4
    doc = SimpleDocTemplate(output, pagesize=pagesize,
                            leftMargin=0.5 * inch, rightMargin=0.5 * inch,
                            topMargin=0.5 * inch, bottomMargin=0.5 * inch,
                            title=title)
    styles = getSampleStyleSheet()

    story = [Paragraph(escape(title), styles['Title'])]
    if subtitle:
        story.append(Paragraph(escape(subtitle), styles['Heading3']))
    story.append(Paragraph(f"Generated: {datetime.now().strftime('%Y-%m-%d')}", styles['Normal']))
    story.append(Spacer(1, 0.2 * inch))

    table = Table([list(headers)] + [[str(value) for value in row] for row in rows],
                  repeatRows=1)
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#3B82F6')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#F3F4F6')]),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
    ]))
    story.append(table)

    doc.build(story)
    output.seek(0)
    return output
