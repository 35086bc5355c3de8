"""
render.py
Spreadsheet and PDF output for report rows.
"""

from io import BytesIO
import pandas as pd
from reportlab.lib.pagesizes import A4
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

ELLIPSIS = "..."
FONT, FONT_SIZE = "Helvetica", 9


def fit_text(text: str, max_width: float, font: str = FONT, size: float = FONT_SIZE) -> str:
    """Cut `text` to `max_width` points, ending with "..." when something was dropped."""
    if stringWidth(text, font, size) <= max_width:
        return text
    while text and stringWidth(text + ELLIPSIS, font, size) > max_width:
        text = text[:-1]
    return text + ELLIPSIS


XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MIME = "application/pdf"


def to_xlsx(df: pd.DataFrame, totals: dict, sheet: str = "Report") -> bytes:
    """Rows on `sheet`, flat totals on a second "Totals" sheet."""
    flat = {}
    for k, v in totals.items():
        if isinstance(v, dict):
            flat.update({f"{k}.{kk}": vv for kk, vv in v.items()})
        else:
            flat[k] = v
    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet)
        pd.DataFrame(list(flat.items()), columns=["metric", "value"]).to_excel(writer, index=False, sheet_name="Totals")
    return output.getvalue()


def to_pdf(title: str, df: pd.DataFrame, columns: list, totals: dict) -> bytes:
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    width, height = A4
    margin = 40
    col_w = (width - 2 * margin) / max(len(columns), 1)
    y = height - margin

    def header():
        nonlocal y
        c.setFont("Helvetica-Bold", 9)
        for i, col in enumerate(columns):
            c.drawString(margin + i * col_w, y, str(col))
        y -= 14
        c.setFont("Helvetica", 9)

    c.setFont("Helvetica-Bold", 14)
    c.drawString(margin, y, title)
    y -= 24
    header()
    for _, row in df.iterrows():
        if y < margin + 14:
            c.showPage()
            y = height - margin
            header()
        for i, col in enumerate(columns):
            val = row[col]
            text = "" if val is None or (isinstance(val, float) and pd.isna(val)) else str(val)
            c.drawString(margin + i * col_w, y, fit_text(text, col_w - 6))
        y -= 12

    if y < margin + 14 * (len(totals) + 2):
        c.showPage()
        y = height - margin
    y -= 10
    c.setFont("Helvetica-Bold", 10)
    c.drawString(margin, y, "Totals")
    y -= 14
    c.setFont("Helvetica", 10)
    for k, v in totals.items():
        c.drawString(margin, y, f"{k}: {v}")
        y -= 14
    c.showPage()
    c.save()
    return buf.getvalue()
