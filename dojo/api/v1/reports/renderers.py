"""Spreadsheet and PDF rendering for report documents."""

import logging
from decimal import Decimal
from io import BytesIO
from typing import Optional
from xml.sax.saxutils import escape

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.platypus import HRFlowable, Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from dojo.core.config import settings
from dojo.core.enums import FeeStatus
from dojo.core.labels import format_date, format_status_label

from .schemas import InvoiceDocument, TabularDocument

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MEDIA_TYPE = "application/pdf"

CRIMSON = colors.Color(139 / 255, 0, 0)
STATUS_COLORS = {
    FeeStatus.paid: colors.Color(0, 128 / 255, 0),
    FeeStatus.partial: colors.Color(200 / 255, 150 / 255, 0),
    FeeStatus.unpaid: colors.Color(200 / 255, 0, 0),
}


def render_tabular_xlsx(document: TabularDocument) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = document.sheet_name[:31]

    header_fill = PatternFill(start_color="8B0000", end_color="8B0000", fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF")
    thin = Side(style="thin", color="000000")
    border_style = Border(left=thin, right=thin, top=thin, bottom=thin)

    ws.append(document.columns)
    for cell in ws[1]:
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal="center", vertical="center")
        cell.border = border_style

    for row in document.rows:
        ws.append([row.get(column, "") for column in document.columns])
        for cell in ws[ws.max_row]:
            cell.border = border_style

    for idx, column in enumerate(document.columns, start=1):
        width = document.column_widths.get(column)
        if width:
            ws.column_dimensions[get_column_letter(idx)].width = width

    ws.freeze_panes = "A2"

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def _load_logo(logo_path: Optional[str]) -> Optional[Image]:
    """Letterhead logo, or None if it is not configured or cannot be read."""
    if not logo_path:
        return None
    try:
        with open(logo_path, "rb") as fh:
            data = fh.read()
        ImageReader(BytesIO(data)).getSize()
    except Exception as exc:
        logger.warning("Invoice logo %s could not be loaded: %s", logo_path, exc)
        return None
    return Image(BytesIO(data), width=25 * mm, height=25 * mm)


def _money(value: Decimal) -> str:
    return f"Rs.{value:.2f}"


def render_invoice_pdf(document: InvoiceDocument, logo_path: Optional[str] = None) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=20 * mm,
        leftMargin=20 * mm,
        topMargin=10 * mm,
        bottomMargin=20 * mm,
        title=document.invoice_number,
    )
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "InvoiceTitle",
        parent=styles["Heading1"],
        fontSize=18,
        textColor=CRIMSON,
        alignment=TA_CENTER,
        spaceAfter=4,
    )
    subtitle_style = ParagraphStyle(
        "InvoiceSubtitle",
        parent=styles["Heading2"],
        fontSize=14,
        alignment=TA_CENTER,
        spaceAfter=4,
    )
    normal = styles["Normal"]
    right = ParagraphStyle("Right", parent=normal, alignment=TA_RIGHT)
    footer_style = ParagraphStyle(
        "Footer",
        parent=normal,
        fontName="Helvetica-Oblique",
        fontSize=9,
        textColor=colors.grey,
        alignment=TA_CENTER,
    )

    elements = []
    logo = _load_logo(logo_path)
    if logo is not None:
        elements.append(logo)
        elements.append(Spacer(1, 3 * mm))

    elements.append(Paragraph(escape(settings.school_name), title_style))
    elements.append(Paragraph("FEE INVOICE", subtitle_style))
    elements.append(HRFlowable(width="100%", thickness=1, color=CRIMSON, spaceAfter=8))

    status_color = STATUS_COLORS[document.status].hexval()[2:]
    details = Table(
        [
            [
                Paragraph(f"<b>Invoice No:</b> {document.invoice_number}", normal),
                Paragraph(f"<b>Date:</b> {format_date(document.issued_on)}", right),
            ],
            [
                Paragraph(f"<b>Period:</b> {document.period_label}", normal),
                Paragraph(
                    f'<b>Status:</b> <font color="#{status_color}">{format_status_label(document.status)}</font>',
                    right,
                ),
            ],
        ],
        colWidths=[110 * mm, 60 * mm],
    )
    elements.append(details)
    elements.append(Spacer(1, 6 * mm))

    bill_to = document.bill_to
    bill_rows = [
        [Paragraph("<b>BILL TO:</b>", normal), ""],
        [
            Paragraph(f"<b>Student Name:</b> {escape(bill_to.name)}", normal),
            Paragraph(f"<b>Reg. No:</b> {escape(bill_to.registration_number)}", normal)
            if bill_to.registration_number
            else "",
        ],
        [
            Paragraph(f"<b>Guardian:</b> {escape(bill_to.guardian_name)}", normal),
            Paragraph(f"<b>Phone:</b> {escape(bill_to.phone_number)}", normal),
        ],
    ]
    if bill_to.address:
        bill_rows.append([Paragraph(f"<b>Address:</b> {escape(bill_to.address)}", normal), ""])
    bill_table = Table(bill_rows, colWidths=[95 * mm, 75 * mm])
    bill_table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, -1), colors.HexColor("#F5F5F5")),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]))
    elements.append(bill_table)
    elements.append(Spacer(1, 8 * mm))

    line_data = [["Description", "Fee Structure", "Amount (Rs.)"]]
    for line in document.lines:
        line_data.append([line.description, line.fee_structure, _money(line.amount)])
    line_table = Table(line_data, colWidths=[80 * mm, 50 * mm, 40 * mm])
    line_table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), CRIMSON),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 10),
        ("ALIGN", (1, 0), (1, -1), "CENTER"),
        ("ALIGN", (2, 0), (2, -1), "RIGHT"),
        ("TOPPADDING", (0, 0), (-1, -1), 5),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
    ]))
    elements.append(line_table)
    elements.append(Spacer(1, 6 * mm))

    totals = document.totals
    summary = [["Sub Total:", _money(totals.total_obligated)]]
    if totals.total_paid > 0:
        summary.append(["Amount Paid:", _money(totals.total_paid)])
    if totals.total_balance > 0:
        summary.append(["Balance Due:", _money(totals.total_balance)])
    else:
        summary.append(["PAID IN FULL", _money(Decimal("0"))])
    summary_table = Table(summary, colWidths=[40 * mm, 30 * mm], hAlign="RIGHT")
    summary_table.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (-1, -1), "Helvetica-Bold"),
        ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ("LINEABOVE", (0, 0), (-1, 0), 0.5, colors.lightgrey),
        ("LINEABOVE", (0, -1), (-1, -1), 1, CRIMSON),
        ("TEXTCOLOR", (0, -1), (-1, -1), STATUS_COLORS[FeeStatus.paid] if totals.total_balance == 0 else STATUS_COLORS[FeeStatus.unpaid]),
        ("FONTSIZE", (0, -1), (-1, -1), 12),
    ]))
    elements.append(summary_table)

    if document.last_paid_date is not None:
        elements.append(Spacer(1, 4 * mm))
        elements.append(Paragraph(f"Payment received on: {format_date(document.last_paid_date)}", right))

    elements.append(Spacer(1, 20 * mm))
    elements.append(HRFlowable(width="100%", thickness=0.5, color=colors.lightgrey, spaceAfter=4))
    elements.append(Paragraph(f"Thank you for being a part of {escape(settings.school_name)}!", footer_style))
    elements.append(Paragraph("This is a computer-generated invoice.", footer_style))

    doc.build(elements)
    pdf = buffer.getvalue()
    buffer.close()
    return pdf
