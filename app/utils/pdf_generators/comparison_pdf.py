# app/utils/pdf_generators/comparison_pdf.py
import io
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

from app.schemas.quotation_schema import QuotationComparisonOut


def _fmt_date(value) -> str:
    return value.strftime("%d %b %Y") if value else "-"


def build_comparison_pdf(comparison: QuotationComparisonOut) -> bytes:
    """Render a quotation comparison sheet as an A4 PDF and return the raw bytes."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=15 * mm,
        leftMargin=15 * mm,
        topMargin=12 * mm,
        bottomMargin=12 * mm,
        title=f"Quotation comparison #{comparison.request.id}",
    )

    styles = getSampleStyleSheet()
    header = colors.HexColor("#1e293b")
    highlight = colors.HexColor("#dcfce7")
    border = colors.HexColor("#e2e8f0")
    small = ParagraphStyle("Small", parent=styles["Normal"], fontSize=8, textColor=colors.HexColor("#64748b"))

    request = comparison.request
    elements = [
        Paragraph(f"Quotation Comparison - Request #{request.id}", styles["Title"]),
        Paragraph(
            f"Customer: {escape(request.customer_name or str(request.customer_id))} &nbsp;&nbsp; "
            f"Status: {request.status} &nbsp;&nbsp; "
            f"Requested: {_fmt_date(request.request_date)} &nbsp;&nbsp; "
            f"Required by: {_fmt_date(request.required_date)}",
            styles["Normal"],
        ),
        Spacer(1, 6),
    ]

    # Requested items
    item_rows = [["Product", "Brand", "Qty", "Specifications"]]
    for item in comparison.request_items:
        item_rows.append([
            item.product_name or f"#{item.product_id}",
            item.product_brand or "-",
            str(item.quantity),
            Paragraph(escape(item.specifications or "-"), small),
        ])
    items_table = Table(item_rows, colWidths=[60 * mm, 35 * mm, 15 * mm, 70 * mm])
    items_table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), header),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("GRID", (0, 0), (-1, -1), 0.5, border),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))
    elements.extend([items_table, Spacer(1, 10)])

    if not comparison.responses:
        elements.append(Paragraph("No responses have been received for this request yet.", styles["Normal"]))
    else:
        rows = [["Rank", "Distributor", "Total", "Avg. delivery", "Covers all", "Status", "Submitted"]]
        for response in comparison.responses:
            rows.append([
                str(response.rank),
                response.distributor_name or f"#{response.distributor_id}",
                f"{response.total_price:.2f}",
                f"{response.average_delivery_days} days",
                "Yes" if response.covers_all_items else "No",
                response.status,
                _fmt_date(response.submission_date),
            ])
        table = Table(rows, colWidths=[12 * mm, 50 * mm, 25 * mm, 25 * mm, 20 * mm, 22 * mm, 26 * mm])
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), header),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("ALIGN", (2, 1), (3, -1), "RIGHT"),
            ("GRID", (0, 0), (-1, -1), 0.5, border),
            # Best offer
            ("BACKGROUND", (0, 1), (-1, 1), highlight),
        ]))
        elements.append(table)
        elements.append(Spacer(1, 8))
        elements.append(Paragraph(
            f"Responses: {comparison.response_count} &nbsp;&nbsp; "
            f"Best price: {comparison.best_price:.2f} &nbsp;&nbsp; "
            f"Worst price: {comparison.worst_price:.2f} &nbsp;&nbsp; "
            f"Average: {comparison.average_price:.2f} &nbsp;&nbsp; "
            f"Fastest delivery: {comparison.best_delivery_days} days",
            styles["Normal"],
        ))

    doc.build(elements)
    return buffer.getvalue()
