"""
PDF cost report generation.

Renders a single project's costs as:
- header with project details
- budget totals
- spend by category
- itemised cost table
"""

import io
from datetime import datetime
from typing import Any, Dict, List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import (
    HRFlowable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle,
)

from app.services.email_templates import format_currency

BRAND_COLOR = colors.HexColor('#1a1a2e')
RULE_COLOR = colors.HexColor('#e0e0e0')
MUTED_COLOR = colors.HexColor('#666666')


class CostReportGenerator:
    """Builds cost report PDFs for a project."""

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        """Add custom paragraph styles (names must not clash with the sample sheet)."""
        self.styles.add(ParagraphStyle(
            name='ReportTitle',
            parent=self.styles['Heading1'],
            fontSize=22,
            spaceAfter=12,
            alignment=TA_CENTER,
            textColor=BRAND_COLOR,
        ))
        self.styles.add(ParagraphStyle(
            name='ReportSubtitle',
            parent=self.styles['Normal'],
            fontSize=11,
            spaceAfter=20,
            alignment=TA_CENTER,
            textColor=MUTED_COLOR,
        ))
        self.styles.add(ParagraphStyle(
            name='SectionHeader',
            parent=self.styles['Heading2'],
            fontSize=13,
            spaceBefore=18,
            spaceAfter=8,
            textColor=BRAND_COLOR,
        ))
        self.styles.add(ParagraphStyle(
            name='Footer',
            parent=self.styles['Normal'],
            fontSize=8,
            textColor=colors.HexColor('#888888'),
            alignment=TA_CENTER,
            spaceBefore=20,
        ))

    def _section(self, story: list, title: str) -> None:
        story.append(Paragraph(title, self.styles['SectionHeader']))
        story.append(HRFlowable(width="100%", thickness=1, color=RULE_COLOR))

    def generate_cost_report(self, report: Dict[str, Any]) -> bytes:
        """
        Render a cost report.

        Args:
            report: dict with project_name, address, project_type, status,
                total_budget, total_spent, categories and costs

        Returns:
            PDF bytes
        """
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=0.75*inch,
            leftMargin=0.75*inch,
            topMargin=0.75*inch,
            bottomMargin=0.75*inch,
            title=f"Cost Report - {report.get('project_name', '')}",
        )

        story = []

        story.append(Paragraph(escape(report.get("project_name", "Project")), self.styles['ReportTitle']))
        story.append(Paragraph("Project Cost Report", self.styles['ReportSubtitle']))

        self._section(story, "PROJECT DETAILS")
        details = [
            ["Address:", report.get("address") or "N/A"],
            ["Type:", report.get("project_type") or "N/A"],
            ["Status:", report.get("status") or "N/A"],
        ]
        details_table = Table(details, colWidths=[1.5*inch, 5*inch])
        details_table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('TEXTCOLOR', (0, 0), (0, -1), MUTED_COLOR),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
        ]))
        story.append(details_table)

        self._section(story, "BUDGET SUMMARY")
        total_spent = report.get("total_spent", 0)
        budget: Optional[int] = report.get("total_budget")
        summary = [
            ["Total Budget:", format_currency(budget) if budget else "Not set"],
            ["Total Spent:", format_currency(total_spent)],
            ["Remaining:", format_currency(budget - total_spent) if budget else "N/A"],
            ["Number of Costs:", str(len(report.get("costs", [])))],
        ]
        summary_table = Table(summary, colWidths=[3*inch, 3*inch])
        summary_table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 11),
            ('TEXTCOLOR', (0, 0), (0, -1), MUTED_COLOR),
            ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
            ('LINEABOVE', (0, -1), (-1, -1), 1, BRAND_COLOR),
        ]))
        story.append(summary_table)

        self._section(story, "SPEND BY CATEGORY")
        categories: List[Dict[str, Any]] = report.get("categories", [])
        if categories:
            rows = [["Category", "Costs", "Total"]]
            for cat in categories:
                rows.append([cat["display_name"], str(cat["count"]), format_currency(cat["total"])])
            story.append(self._grid(rows, [3.5*inch, 1*inch, 2*inch]))
        else:
            story.append(Paragraph("No costs recorded.", self.styles['Normal']))

        self._section(story, "COSTS")
        costs: List[Dict[str, Any]] = report.get("costs", [])
        if costs:
            rows = [["Date", "Description", "Category", "Contact", "Amount"]]
            for cost in costs:
                rows.append([
                    self._format_date(cost.get("date")),
                    (cost.get("description") or "")[:40],
                    cost.get("category") or "-",
                    (cost.get("contact") or "-")[:24],
                    format_currency(cost.get("amount", 0)),
                ])
            story.append(self._grid(rows, [0.9*inch, 2.2*inch, 1.2*inch, 1.2*inch, 1*inch]))
        else:
            story.append(Paragraph("No costs recorded.", self.styles['Normal']))

        story.append(Spacer(1, 0.4*inch))
        story.append(HRFlowable(width="100%", thickness=1, color=RULE_COLOR))
        story.append(Paragraph(
            f"Generated on {datetime.utcnow().strftime('%Y-%m-%d %H:%M UTC')}",
            self.styles['Footer']
        ))

        doc.build(story)
        buffer.seek(0)
        return buffer.read()

    def _grid(self, rows: list, col_widths: list) -> Table:
        table = Table(rows, colWidths=col_widths, repeatRows=1)
        table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('BACKGROUND', (0, 0), (-1, 0), BRAND_COLOR),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('ALIGN', (-1, 0), (-1, -1), 'RIGHT'),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('GRID', (0, 0), (-1, -1), 0.5, RULE_COLOR),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
            ('TOPPADDING', (0, 0), (-1, -1), 6),
            ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#f9f9f9')]),
        ]))
        return table

    def _format_date(self, dt: Any) -> str:
        if dt is None:
            return "N/A"
        if hasattr(dt, 'strftime'):
            return dt.strftime("%Y-%m-%d")
        return str(dt)[:10]


def get_report_generator() -> CostReportGenerator:
    return CostReportGenerator()
