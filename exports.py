"""
Excel and PDF export of depreciation schedules and annual reports.

Builders return raw bytes; routes decide how to send or store them.
Schedules are rendered exactly as computed, amounts are only rounded by the
cell number format (Excel) or the formatter (PDF).
"""

import io
import re

import arabic_reshaper
from bidi.algorithm import get_display
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from helpers import format_amount, format_date
from i18n import is_rtl

XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
PDF_MIMETYPE = 'application/pdf'

AMOUNT_FORMAT = '#,##0.00'
HEADER_FILL = PatternFill('solid', fgColor='DDEBF7')
PDF_FONT_NAME = 'AssetRegisterFont'
ARABIC_TEXT = re.compile(r'[\u0600-\u06FF]')


# ── Excel ─────────────────────────────────────────────────────────────────

def build_schedule_xlsx(asset, schedule, t, rtl=False):
    """One sheet: asset summary lines, then year / depreciation / accumulated / book value."""
    wb = Workbook()
    ws = wb.active
    ws.title = _sheet_title(t('schedule.title'))
    ws.sheet_view.rightToLeft = rtl

    ws.append([t('form.name'), asset.name])
    ws.append([t('form.purchaseDate'), format_date(asset.purchase_date)])
    ws.append([t('form.cost'), asset.cost])
    ws.append([t('form.salvageValue'), asset.salvage_value])
    ws.append([t('form.usefulLife'), asset.useful_life])
    ws.append([t('form.depreciationMethod'), t(f'method.{asset.depreciation_method}')])
    for row in range(3, 5):
        ws.cell(row=row, column=2).number_format = AMOUNT_FORMAT
    ws.append([])

    _append_header(ws, [
        t('schedule.year'), t('schedule.depreciation'),
        t('schedule.accumulated'), t('schedule.bookValue'),
    ])
    header_row = ws.max_row
    for entry in schedule:
        ws.append([
            entry['year'], entry['depreciation'],
            entry['accumulated_depreciation'], entry['book_value'],
        ])
        _format_amounts(ws, ws.max_row, first_col=2, last_col=4)

    ws.freeze_panes = ws.cell(row=header_row + 1, column=1)
    _autosize(ws)
    return _workbook_bytes(wb)


def build_annual_report_xlsx(report, t, rtl=False):
    """One row per asset plus a total row."""
    wb = Workbook()
    ws = wb.active
    ws.title = _sheet_title(f"{t('report.title')} {report['year']}")
    ws.sheet_view.rightToLeft = rtl

    _append_header(ws, [
        t('table.name'), t('report.depreciationForYear'), t('report.bookValue'),
    ])
    for row in report['rows']:
        ws.append([row['name'], row['depreciation'], row['book_value']])
        _format_amounts(ws, ws.max_row, first_col=2, last_col=3)

    ws.append([t('common.total'), report['total_depreciation']])
    total_row = ws.max_row
    _format_amounts(ws, total_row, first_col=2, last_col=2)
    for cell in ws[total_row]:
        cell.font = Font(bold=True)

    ws.freeze_panes = 'A2'
    _autosize(ws)
    return _workbook_bytes(wb)


def _append_header(ws, labels):
    ws.append(labels)
    for cell in ws[ws.max_row]:
        cell.font = Font(bold=True)
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal='center')


def _format_amounts(ws, row, first_col, last_col):
    for col in range(first_col, last_col + 1):
        ws.cell(row=row, column=col).number_format = AMOUNT_FORMAT


def _autosize(ws):
    for idx, column in enumerate(ws.columns, start=1):
        width = max((len(str(c.value)) for c in column if c.value is not None), default=8)
        ws.column_dimensions[get_column_letter(idx)].width = min(max(width + 2, 12), 50)


def _sheet_title(title):
    """Excel sheet names: max 31 chars, no []:*?/\\."""
    return re.sub(r'[\[\]:*?/\\]', '-', title)[:31]


def _workbook_bytes(wb):
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


# ── PDF ───────────────────────────────────────────────────────────────────

def pdf_language(language, font_path):
    """Arabic labels need a TTF font with Arabic glyphs; fall back to English without one."""
    if is_rtl(language) and not font_path:
        return 'en'
    return language


def build_schedule_pdf(asset, schedule, t, currency='EGP', font_path=None, generated_by=None):
    """Title, asset summary and the schedule table."""
    font = _register_font(font_path)
    meta = [
        (t('form.name'), asset.name),
        (t('form.purchaseDate'), format_date(asset.purchase_date)),
        (t('form.cost'), f'{format_amount(asset.cost)} {currency}'),
        (t('form.salvageValue'), f'{format_amount(asset.salvage_value)} {currency}'),
        (t('form.usefulLife'), f"{asset.useful_life} {t('common.year')}"),
        (t('form.depreciationMethod'), t(f'method.{asset.depreciation_method}')),
    ]
    rows = [[
        t('schedule.year'), t('schedule.depreciation'),
        t('schedule.accumulated'), t('schedule.bookValue'),
    ]]
    for entry in schedule:
        rows.append([
            str(entry['year']),
            format_amount(entry['depreciation']),
            format_amount(entry['accumulated_depreciation']),
            format_amount(entry['book_value']),
        ])
    return _render_pdf(t('schedule.title'), meta, rows, font,
                       footer=_footer(t, generated_by))


def build_annual_report_pdf(report, t, currency='EGP', font_path=None, generated_by=None):
    """Per-asset rows for one year with the total as the last table row."""
    font = _register_font(font_path)
    meta = [(t('report.year'), str(report['year']))]
    rows = [[t('table.name'), t('report.depreciationForYear'), t('report.bookValue')]]
    for row in report['rows']:
        rows.append([
            row['name'],
            format_amount(row['depreciation']),
            format_amount(row['book_value']),
        ])
    rows.append([
        t('common.total'),
        f"{format_amount(report['total_depreciation'])} {currency}",
        '',
    ])
    return _render_pdf(f"{t('report.title')} {report['year']}", meta, rows, font,
                       bold_last_row=True, footer=_footer(t, generated_by))


def _footer(t, generated_by):
    return t('export.generatedBy', generated_by) if generated_by else None


def _register_font(font_path):
    """Register a TTF font (needed for Arabic glyphs); Helvetica otherwise."""
    if not font_path:
        return 'Helvetica'
    if PDF_FONT_NAME not in pdfmetrics.getRegisteredFontNames():
        pdfmetrics.registerFont(TTFont(PDF_FONT_NAME, font_path))
        # single face: <b> in paragraphs maps back onto the same font
        pdfmetrics.registerFontFamily(PDF_FONT_NAME, normal=PDF_FONT_NAME, bold=PDF_FONT_NAME,
                                      italic=PDF_FONT_NAME, boldItalic=PDF_FONT_NAME)
    return PDF_FONT_NAME


def _render_pdf(title, meta, rows, font, bold_last_row=False, footer=None):
    buf = io.BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=A4, leftMargin=36, rightMargin=36,
                            topMargin=36, bottomMargin=36, title=title)
    styles = getSampleStyleSheet()
    title_style = styles['Title']
    body_style = styles['Normal']
    title_style.fontName = font
    body_style.fontName = font

    story = [Paragraph(_escape(_shape(title)), title_style), Spacer(1, 6)]
    lines = [f'<b>{_escape(_shape(label))}:</b> {_escape(_shape(value))}' for label, value in meta]
    story += [Paragraph('<br/>'.join(lines), body_style), Spacer(1, 12)]

    table = Table([[_shape(cell) for cell in row] for row in rows], repeatRows=1)
    style = [
        ('FONTNAME', (0, 0), (-1, -1), font),
        ('BACKGROUND', (0, 0), (-1, 0), colors.lightgrey),
        ('ALIGN', (1, 1), (-1, -1), 'RIGHT'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('GRID', (0, 0), (-1, -1), 0.25, colors.grey),
    ]
    if bold_last_row:
        style.append(('LINEABOVE', (0, -1), (-1, -1), 1, colors.black))
    table.setStyle(TableStyle(style))
    story.append(table)

    if footer:
        story += [Spacer(1, 18), Paragraph(_escape(_shape(footer)), body_style)]

    doc.build(story)
    return buf.getvalue()


def _shape(value):
    """Join Arabic letters into their contextual forms and order them right-to-left."""
    text = str(value if value is not None else '')
    if ARABIC_TEXT.search(text):
        return get_display(arabic_reshaper.reshape(text))
    return text


def _escape(value):
    return (str(value if value is not None else '')
            .replace('&', '&amp;').replace('<', '&lt;').replace('>', '&gt;'))
