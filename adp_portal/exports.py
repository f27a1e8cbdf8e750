"""
Excel export of a dashboard view.
"""
import io
from datetime import datetime

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# (header, attribute or callable)
COLUMNS = [
    ("ID", "id"),
    ("CR Number", "cr_number"),
    ("CR Date", "cr_date"),
    ("Work Type", "sector"),
    ("Proposal Name", "proposal"),
    ("Area", "area"),
    ("Locality", "locality"),
    ("Ward No", "ward_no"),
    ("Lat/Long", "latlong"),
    ("Estimated Cost", "cost"),
    ("Prioritization", "priority"),
    ("Status", lambda i: i.status.value if i.status else "Not forwarded"),
    ("Section", "section"),
    ("Remarks", "remarks"),
    ("Rejected By", "rejected_by"),
    ("Forwarded Date", "forwarded_date"),
]


def _value(item, source):
    if callable(source):
        return source(item)
    value = getattr(item, source)
    return "" if value is None else value


def build_workbook(items, title: str = "Works") -> Workbook:
    """One header row plus one row per work. Attachments are left out."""
    wb = Workbook()
    ws = wb.active
    ws.title = title[:31]

    header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF")
    thin_border = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )

    for col, (header, _) in enumerate(COLUMNS, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal='center', wrap_text=True)
        cell.border = thin_border

    for row_idx, item in enumerate(items, 2):
        for col_idx, (_, source) in enumerate(COLUMNS, 1):
            cell = ws.cell(row=row_idx, column=col_idx, value=_value(item, source))
            cell.border = thin_border

    # Adjust column widths
    for col in ws.columns:
        column = col[0].column_letter
        max_length = max(len(str(cell.value)) for cell in col if cell.value is not None)
        ws.column_dimensions[column].width = min(max_length + 2, 50)

    return wb


def workbook_bytes(items, title: str = "Works"):
    """Save the workbook to an in-memory stream. Returns (stream, filename)."""
    output = io.BytesIO()
    build_workbook(items, title).save(output)
    output.seek(0)
    filename = f"{title.replace(' ', '_')}_Export_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"
    return output, filename
