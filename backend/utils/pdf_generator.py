"""Document utility boundary for labor forecast PDF rendering."""

from __future__ import annotations

from io import BytesIO
from typing import Any
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from services.forecast_service import format_currency


HEADER_BG = colors.HexColor("#0A2A66")
ROW_ALT_BG = colors.HexColor("#F5F8FF")
GRID = colors.HexColor("#9BB4F0")
WARNING = colors.HexColor("#B45309")


def _table_style(header: bool = True) -> TableStyle:
	commands = [
		("FONTNAME", (0, 0), (-1, -1), "Helvetica"),
		("FONTSIZE", (0, 0), (-1, -1), 8.5),
		("GRID", (0, 0), (-1, -1), 0.4, GRID),
		("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, ROW_ALT_BG]),
		("ALIGN", (1, 0), (-1, -1), "RIGHT"),
		("LEFTPADDING", (0, 0), (-1, -1), 6),
		("RIGHTPADDING", (0, 0), (-1, -1), 6),
		("TOPPADDING", (0, 0), (-1, -1), 4),
		("BOTTOMPADDING", (0, 0), (-1, -1), 4),
	]
	if header:
		commands.extend(
			[
				("BACKGROUND", (0, 0), (-1, 0), HEADER_BG),
				("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
				("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
			]
		)
	return TableStyle(commands)


def _rate_text(rate: float | None) -> str:
	return "no data" if rate is None else f"${rate:,.2f}/hr"


def _week_rows(forecast: dict[str, Any]) -> list[list[str]]:
	rows = [["Week Ending", "Craft", "Category", "Headcount", "Hours", "Rate", "Cost"]]
	for week in forecast.get("weeks", []):
		for entry in week["entries"]:
			rows.append(
				[
					week["weekEnding"],
					f"{entry['craftName']} ({entry['craftCode']})",
					entry["laborCategory"],
					str(entry["headcount"]),
					f"{entry['hours']:,.0f}",
					_rate_text(entry.get("avgRate")),
					format_currency(entry["cost"]),
				]
			)
		totals = week["totals"]
		rows.append(
			[
				week["weekEnding"],
				"Week total",
				"",
				str(totals["headcount"]),
				f"{totals['totalHours']:,.0f}",
				"",
				format_currency(totals["totalCost"]),
			]
		)
	return rows


def generate_forecast_pdf(forecast: dict[str, Any]) -> bytes:
	"""Render a serialized forecast result into PDF bytes."""
	buffer = BytesIO()
	document = SimpleDocTemplate(
		buffer,
		pagesize=landscape(A4),
		rightMargin=1.4 * cm,
		leftMargin=1.4 * cm,
		topMargin=1.4 * cm,
		bottomMargin=1.4 * cm,
		title="Labor Forecast",
	)

	styles = getSampleStyleSheet()
	title_style = ParagraphStyle(
		"ReportTitle",
		parent=styles["Heading1"],
		fontName="Helvetica-Bold",
		fontSize=17,
		textColor=HEADER_BG,
		spaceAfter=10,
	)
	section_style = ParagraphStyle(
		"SectionTitle",
		parent=styles["Heading2"],
		fontName="Helvetica-Bold",
		fontSize=12,
		textColor=colors.HexColor("#163A8A"),
		spaceBefore=10,
		spaceAfter=6,
	)
	body_style = ParagraphStyle(
		"BodyTextCustom",
		parent=styles["BodyText"],
		fontName="Helvetica",
		fontSize=10,
		leading=14,
	)
	warning_style = ParagraphStyle("WarningText", parent=body_style, textColor=WARNING)

	grand = forecast["grandTotals"]
	story: list[Any] = [
		Paragraph("Labor Forecast", title_style),
		Paragraph(
			f"Project: <b>{forecast['projectId']}</b> | Weeks: <b>{forecast['startDate']}</b> to "
			f"<b>{forecast['endDate']}</b> ({forecast['weeksAhead']}) | "
			f"Standard hours/person/week: <b>{forecast['standardHoursPerWeek']:g}</b> | "
			f"Generated: {forecast['generatedAt']}",
			body_style,
		),
		Paragraph("Grand Totals", section_style),
	]

	totals_table = Table(
		[
			["Headcount (person-weeks)", str(grand["headcount"])],
			["Total hours", f"{grand['totalHours']:,.0f}"],
			["Total cost", format_currency(grand["totalCost"])],
			["Hours without a rate", f"{grand['uncostedHours']:,.0f}"],
		],
		colWidths=[6.0 * cm, 5.0 * cm],
	)
	totals_table.setStyle(_table_style(header=False))
	story.append(totals_table)

	story.append(Paragraph("By Labor Category", section_style))
	category_rows = [["Category", "Crafts", "Headcount", "Hours", "Avg Rate", "Cost"]]
	for summary in forecast.get("categorySummary", []):
		category_rows.append(
			[
				summary["category"],
				str(summary["craftCount"]),
				str(summary["totalHeadcount"]),
				f"{summary['totalHours']:,.0f}",
				_rate_text(summary.get("avgRate")),
				format_currency(summary["totalCost"]),
			]
		)
	category_table = Table(category_rows, repeatRows=1)
	category_table.setStyle(_table_style())
	story.append(category_table)

	uncosted = forecast.get("uncostedCraftTypes", [])
	if uncosted:
		story.append(Paragraph("Crafts Without Rate History", section_style))
		names = escape(", ".join(f"{craft['craftName']} ({craft['craftCode']})" for craft in uncosted))
		story.append(
			Paragraph(
				f"The following crafts have no actuals in the lookback window and are projected at $0: {names}.",
				warning_style,
			)
		)

	story.append(Paragraph("Weekly Detail", section_style))
	week_rows = _week_rows(forecast)
	if len(week_rows) > 1:
		week_table = Table(week_rows, repeatRows=1)
		week_table.setStyle(_table_style())
		story.append(week_table)
	else:
		story.append(Paragraph("No headcount is planned in this window.", body_style))

	story.append(Spacer(1, 0.3 * cm))
	document.build(story)
	pdf_bytes = buffer.getvalue()
	buffer.close()
	return pdf_bytes
