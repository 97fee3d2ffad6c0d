"""
NetWorth Pro - Report Export
============================
Builds downloadable PDF and JSON reports from a NetWorthSnapshot.

The generators only produce bytes and a file name; the UI decides how to
hand them to the user (Streamlit download buttons).
"""

import json
from dataclasses import dataclass
from datetime import date, datetime, timezone
from io import BytesIO
from typing import Any, Dict, List, Optional

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from calculator import (
    asset_breakdown,
    debt_to_asset_ratio,
    liability_breakdown,
    non_zero_categories,
    CategoryBreakdown,
)
from currency import format_currency
from models import EXPENSE_FIELDS, INCOME_FIELDS, NetWorthSnapshot


@dataclass
class ExportFile:
    filename: str
    data: bytes
    mime_type: str


def report_filename(extension: str, today: Optional[date] = None) -> str:
    """net-worth-report-<YYYY-MM-DD>.<extension>"""
    today = today or datetime.now(timezone.utc).date()
    return f"net-worth-report-{today.isoformat()}.{extension}"


def report_fingerprint(snapshot: NetWorthSnapshot, today: Optional[date] = None) -> str:
    """
    Cache key for the rendered reports: the snapshot's records, currency and
    totals plus the report date. The snapshot timestamp is ignored.
    """
    today = today or datetime.now(timezone.utc).date()
    payload = snapshot.model_dump_json(by_alias=True, exclude={"timestamp"})
    return f"{today.isoformat()}|{payload}"


# =============================================================================
# JSON
# =============================================================================

def build_json_report(
    snapshot: NetWorthSnapshot,
    include_monthly: bool = True,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Report payload. ``debtToAssetRatio`` is recomputed from the totals rather
    than copied from the snapshot.
    """
    now = now or datetime.now(timezone.utc)
    report: Dict[str, Any] = {
        "timestamp": now.isoformat(),
        "currency": snapshot.currency.value,
        "netWorth": snapshot.net_worth,
        "totalAssets": snapshot.total_assets,
        "totalLiabilities": snapshot.total_liabilities,
        "debtToAssetRatio": debt_to_asset_ratio(snapshot.total_assets, snapshot.total_liabilities),
        "assets": snapshot.assets.model_dump(by_alias=True),
        "liabilities": snapshot.liabilities.model_dump(by_alias=True),
    }
    if include_monthly:
        report.update({
            "monthlyFinancials": snapshot.monthly_financials.model_dump(by_alias=True),
            "monthlyIncome": snapshot.monthly_income,
            "monthlyExpenses": snapshot.monthly_expenses,
            "monthlyCashFlow": snapshot.monthly_cash_flow,
        })
    return report


def export_to_json(
    snapshot: NetWorthSnapshot,
    include_monthly: bool = True,
    now: Optional[datetime] = None,
) -> ExportFile:
    now = now or datetime.now(timezone.utc)
    report = build_json_report(snapshot, include_monthly=include_monthly, now=now)
    return ExportFile(
        filename=report_filename("json", now.date()),
        data=json.dumps(report, indent=2, ensure_ascii=False).encode("utf-8"),
        mime_type="application/json",
    )


# =============================================================================
# PDF
# =============================================================================

def _breakdown_rows(categories: List[CategoryBreakdown], currency) -> List[List[str]]:
    rows = []
    for category in non_zero_categories(categories):
        rows.append([category.name, format_currency(category.value, currency)])
        for item in category.non_zero_items:
            rows.append([f"    {item.label}", format_currency(item.value, currency)])
    return rows


def _breakdown_table(rows: List[List[str]]) -> Table:
    table = Table(rows, colWidths=[4.5 * inch, 2 * inch])
    style = [
        ("FONTNAME", (0, 0), (-1, -1), "Helvetica"),
        ("FONTSIZE", (0, 0), (-1, -1), 10),
        ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
    ]
    # Category rows are the ones that are not indented
    for i, row in enumerate(rows):
        if not row[0].startswith(" "):
            style.append(("FONTNAME", (0, i), (-1, i), "Helvetica-Bold"))
            style.append(("LINEABOVE", (0, i), (-1, i), 0.5, colors.HexColor("#DDDDDD")))
    table.setStyle(TableStyle(style))
    return table


def build_pdf_report(snapshot: NetWorthSnapshot, now: Optional[datetime] = None) -> bytes:
    """
    Render the report: header, summary, asset and liability breakdowns
    (zero categories and items omitted) and monthly cash flow when present.
    """
    now = now or datetime.now(timezone.utc)
    currency = snapshot.currency
    buffer = BytesIO()

    doc = SimpleDocTemplate(
        buffer,
        pagesize=letter,
        topMargin=0.6 * inch,
        bottomMargin=0.6 * inch,
        title="Net Worth Report",
    )
    styles = getSampleStyleSheet()
    story = []

    title_style = ParagraphStyle(
        "ReportTitle",
        parent=styles["Heading1"],
        fontSize=20,
        alignment=TA_CENTER,
        fontName="Helvetica-Bold",
        spaceAfter=6,
    )
    subtitle_style = ParagraphStyle(
        "ReportSubtitle",
        parent=styles["Normal"],
        fontSize=11,
        alignment=TA_CENTER,
        textColor=colors.HexColor("#666666"),
    )
    header_style = ParagraphStyle(
        "SectionHeader",
        parent=styles["Heading2"],
        fontSize=14,
        fontName="Helvetica-Bold",
        spaceBefore=12,
        spaceAfter=6,
    )

    # Header
    story.append(Paragraph("Net Worth Report", title_style))
    story.append(Paragraph(f"Generated on {now.strftime('%B %d, %Y')}", subtitle_style))
    story.append(Spacer(1, 0.25 * inch))

    # Summary
    story.append(Paragraph("Summary", header_style))
    summary_rows = [
        ["Total Assets", format_currency(snapshot.total_assets, currency)],
        ["Total Liabilities", format_currency(snapshot.total_liabilities, currency)],
        ["Net Worth", format_currency(snapshot.net_worth, currency)],
        ["Debt-to-Asset Ratio", f"{debt_to_asset_ratio(snapshot.total_assets, snapshot.total_liabilities)}%"],
    ]
    summary_table = Table(summary_rows, colWidths=[4.5 * inch, 2 * inch])
    summary_table.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (-1, -1), "Helvetica"),
        ("FONTSIZE", (0, 0), (-1, -1), 11),
        ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ("FONTNAME", (0, 2), (-1, 2), "Helvetica-Bold"),
        ("LINEABOVE", (0, 2), (-1, 2), 1, colors.black),
    ]))
    story.append(summary_table)

    # Assets
    story.append(Paragraph("Assets Breakdown", header_style))
    asset_rows = _breakdown_rows(asset_breakdown(snapshot.assets), currency)
    if asset_rows:
        story.append(_breakdown_table(asset_rows))
    else:
        story.append(Paragraph("No assets reported.", styles["Normal"]))

    # Liabilities
    story.append(Paragraph("Liabilities Breakdown", header_style))
    liability_rows = _breakdown_rows(liability_breakdown(snapshot.liabilities), currency)
    if liability_rows:
        story.append(_breakdown_table(liability_rows))
    if snapshot.total_liabilities == 0:
        story.append(Paragraph("No liabilities reported.", styles["Normal"]))

    # Monthly cash flow
    monthly = snapshot.monthly_financials
    if snapshot.monthly_income or snapshot.monthly_expenses:
        story.append(Paragraph("Monthly Cash Flow", header_style))
        rows = [["Monthly Income", format_currency(snapshot.monthly_income, currency)]]
        rows += [
            [f"    {label}", format_currency(getattr(monthly, name), currency)]
            for name, label in INCOME_FIELDS if getattr(monthly, name) > 0
        ]
        rows.append(["Monthly Expenses", format_currency(snapshot.monthly_expenses, currency)])
        rows += [
            [f"    {label}", format_currency(getattr(monthly, name), currency)]
            for name, label in EXPENSE_FIELDS if getattr(monthly, name) > 0
        ]
        rows.append(["Net Cash Flow", format_currency(snapshot.monthly_cash_flow, currency)])
        story.append(_breakdown_table(rows))

    story.append(Spacer(1, 0.3 * inch))
    story.append(Paragraph(
        "Figures are as entered by the user and are not financial advice.",
        styles["Italic"],
    ))

    doc.build(story)
    return buffer.getvalue()


def export_to_pdf(snapshot: NetWorthSnapshot, now: Optional[datetime] = None) -> ExportFile:
    now = now or datetime.now(timezone.utc)
    return ExportFile(
        filename=report_filename("pdf", now.date()),
        data=build_pdf_report(snapshot, now=now),
        mime_type="application/pdf",
    )
