# backend/workshop/services/pdf_renderer.py
"""
Order Report PDF Renderer
Renders an OrderDocument into a paginated Letter-size PDF
"""

import io
import logging
import os
from datetime import datetime
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.pdfgen import canvas
from reportlab.platypus import (
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from ..core.config import ReportConfig
from .report_service import OrderDocument, WorkItemLine

logger = logging.getLogger(__name__)

MARGIN = 0.75 * inch


class _NumberedCanvas(canvas.Canvas):
    """Canvas that knows the page count, for 'Page X of Y' footers."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(total)
            super().showPage()
        super().save()

    def _draw_footer(self, total: int):
        page_width, _ = letter
        stamp = getattr(self, "_generated_at", "")
        self.setFont("Helvetica", 8)
        self.setFillColor(colors.grey)
        self.drawString(MARGIN, MARGIN / 2, f"Generated {stamp}")
        self.drawRightString(
            page_width - MARGIN, MARGIN / 2, f"Page {self._pageNumber} of {total}"
        )


def _fmt_dt(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


def _fmt_money(value) -> str:
    return f"${value:,.2f}"


def _label(name: str) -> str:
    # "TirePressureCalibration" -> "Tire Pressure Calibration"
    out = []
    for ch in name:
        if ch.isupper() and out:
            out.append(" ")
        out.append(ch)
    return "".join(out)


class ReportComposer:
    """Render and store order reports"""

    def __init__(self, config: ReportConfig):
        self.config = config

        self.page_width, self.page_height = letter
        self.content_width = self.page_width - (2 * MARGIN)

        self.brand_color = colors.HexColor("#1f4e79")
        self.dark_gray = colors.HexColor("#1e293b")
        self.light_gray = colors.HexColor("#f1f5f9")

        styles = getSampleStyleSheet()
        self.title_style = ParagraphStyle(
            "ReportTitle",
            parent=styles["Heading1"],
            fontSize=18,
            textColor=self.brand_color,
            spaceAfter=10,
            alignment=1,
        )
        self.heading_style = ParagraphStyle(
            "ReportHeading",
            parent=styles["Heading2"],
            fontSize=12,
            textColor=self.dark_gray,
            spaceBefore=12,
            spaceAfter=6,
        )
        self.body_style = ParagraphStyle(
            "ReportBody",
            parent=styles["Normal"],
            fontSize=9,
            textColor=self.dark_gray,
            spaceAfter=4,
        )

    # ---- public API ----
    def render(self, document: OrderDocument) -> bytes:
        """Generate PDF and return bytes"""
        number = document.header.order_number
        logger.info("Rendering report for order %s", number)

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=letter,
            rightMargin=MARGIN,
            leftMargin=MARGIN,
            topMargin=MARGIN,
            bottomMargin=MARGIN,
            title=f"Work Order {number}",
            author=document.header.advisor or "",
            creator=f"workshop report composer ({self.config.license_mode.value})",
        )

        story = []
        story += self._header(document)
        story += self._customer_vehicle(document)
        story += self._work_items(document)
        story += self._notes(document)
        story += self._summary(document)
        if document.checklist is not None:
            story.append(PageBreak())
            story += self._checklist(document)

        generated = datetime.now().strftime("%Y-%m-%d %H:%M")

        def _make_canvas(*args, **kwargs):
            c = _NumberedCanvas(*args, **kwargs)
            c._generated_at = generated
            return c

        doc.build(story, canvasmaker=_make_canvas)
        pdf = buffer.getvalue()
        buffer.close()

        logger.info("Report for order %s rendered (%s bytes)", number, len(pdf))
        return pdf

    def save(self, document: OrderDocument, pdf_bytes: Optional[bytes] = None) -> str:
        """Write the PDF under output_directory/{order}/ and return its path"""
        number = document.header.order_number
        folder = os.path.join(self.config.output_directory, number)
        os.makedirs(folder, exist_ok=True)

        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        path = os.path.join(folder, f"{number}_{stamp}.pdf")
        data = pdf_bytes if pdf_bytes is not None else self.render(document)
        with open(path, "wb") as fh:
            fh.write(data)

        logger.info("Report for order %s saved to %s", number, path)
        return path

    # ---- sections ----
    def _table(self, rows: List[list], col_widths: List[float], header: bool = True) -> Table:
        table = Table(rows, colWidths=col_widths)
        style = [
            ("FONTNAME", (0, 0), (-1, -1), "Helvetica"),
            ("FONTSIZE", (0, 0), (-1, -1), 8),
            ("TEXTCOLOR", (0, 0), (-1, -1), self.dark_gray),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("GRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
            ("LEFTPADDING", (0, 0), (-1, -1), 4),
            ("RIGHTPADDING", (0, 0), (-1, -1), 4),
        ]
        if header:
            style += [
                ("BACKGROUND", (0, 0), (-1, 0), self.brand_color),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ]
        table.setStyle(TableStyle(style))
        return table

    def _header(self, d: OrderDocument) -> list:
        h = d.header
        rows = [
            ["Order type", h.order_type, "Status", h.status],
            ["Service", h.service_type, "Advisor", h.advisor or "-"],
            ["Created", _fmt_dt(h.created_at), "Promised", _fmt_dt(h.promised_delivery_at)],
            ["Delivered", _fmt_dt(h.delivered_at), "Progress",
             f"{d.completed_work_items}/{d.total_work_items} ({d.progress}%)"],
        ]
        w = self.content_width / 4
        return [
            Paragraph(f"Work Order {h.order_number}", self.title_style),
            self._table(rows, [w] * 4, header=False),
            Spacer(1, 0.15 * inch),
        ]

    def _customer_vehicle(self, d: OrderDocument) -> list:
        c, v = d.customer, d.vehicle
        rows = [
            ["Customer", "Vehicle"],
            [c.name, v.description],
            [f"Tax ID: {c.tax_id or '-'}", f"VIN: {v.vin or '-'}"],
            [f"Phone: {c.phone or '-'}", f"Plates: {v.plates or '-'}"],
            [f"Email: {c.email or '-'}", f"Color: {v.color or '-'}"],
            [Paragraph(escape(c.address), self.body_style), f"Odometer: {v.odometer:,} km"],
        ]
        w = self.content_width / 2
        return [self._table(rows, [w, w]), Spacer(1, 0.15 * inch)]

    def _work_item(self, index: int, item: WorkItemLine) -> list:
        out = [
            Paragraph(f"{index}. {escape(item.description)}", self.heading_style),
            Paragraph(
                f"Technician: {escape(item.technician)} &nbsp; Status: {item.status} &nbsp; "
                f"Start: {_fmt_dt(item.started_at)} &nbsp; End: {_fmt_dt(item.ended_at)} &nbsp; "
                f"Duration: {item.duration or '-'}",
                self.body_style,
            ),
            Paragraph(
                f"Labor: {_fmt_money(item.labor_cost)} &nbsp; Parts: {_fmt_money(item.parts_total)}",
                self.body_style,
            ),
        ]
        if item.technician_comments:
            out.append(Paragraph(f"Comments: {escape(item.technician_comments)}", self.body_style))
        if item.parts:
            rows = [["Part", "Qty", "Unit price", "Total"]]
            rows += [
                [Paragraph(escape(p.description), self.body_style), str(p.quantity),
                 _fmt_money(p.unit_price), _fmt_money(p.total)]
                for p in item.parts
            ]
            cw = self.content_width
            out.append(self._table(rows, [cw * 0.55, cw * 0.1, cw * 0.175, cw * 0.175]))
        return out

    def _work_items(self, d: OrderDocument) -> list:
        story = [Paragraph("Work items", self.heading_style)]
        if not d.work_items:
            story.append(Paragraph("No work items.", self.body_style))
        for i, item in enumerate(d.work_items, start=1):
            story += self._work_item(i, item)
        return story

    def _notes(self, d: OrderDocument) -> list:
        story = [Paragraph("Notes", self.heading_style)]
        story.append(Paragraph(f"Advisor: {escape(d.advisor_notes or '-')}", self.body_style))
        story.append(Paragraph(f"Shop manager: {escape(d.shop_manager_notes or '-')}", self.body_style))
        return story

    def _summary(self, d: OrderDocument) -> list:
        t = d.totals
        rows = [
            ["Parts total", _fmt_money(t.parts_total)],
            ["Labor total", _fmt_money(t.labor_total)],
            ["Subtotal", _fmt_money(t.subtotal)],
            ["Tax (16%)", _fmt_money(t.tax)],
            ["Grand total", _fmt_money(t.grand_total)],
        ]
        table = self._table(rows, [self.content_width * 0.7, self.content_width * 0.3], header=False)
        table.setStyle(TableStyle([
            ("ALIGN", (1, 0), (1, -1), "RIGHT"),
            ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
            ("BACKGROUND", (0, -1), (-1, -1), self.light_gray),
        ]))
        return [Paragraph("Cost summary", self.heading_style), table]

    def _checklist(self, d: OrderDocument) -> list:
        cl = d.checklist
        rating_rows = [["Inspection point", "Rating"]]
        rating_rows += [[_label(k), v or "-"] for k, v in cl.ratings.items()]
        check_rows = [["Task / replaced part", "Done"]]
        check_rows += [[_label(k), "Yes" if v else "No"] for k, v in cl.checks.items()]
        cw = self.content_width
        return [
            Paragraph("Service checklist", self.title_style),
            self._table(rating_rows, [cw * 0.6, cw * 0.4]),
            Spacer(1, 0.2 * inch),
            self._table(check_rows, [cw * 0.6, cw * 0.4]),
        ]
