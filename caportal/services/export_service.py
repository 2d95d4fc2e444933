"""
Spreadsheet export of leads and contact submissions (Excel / CSV)
"""
import csv
import io
from datetime import datetime
from typing import List, Dict, Any

import openpyxl
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from openpyxl.utils import get_column_letter

LEAD_COLUMNS = [
    {'field': 'createdAt', 'header': 'Requested', 'width': 20},
    {'field': 'name', 'header': 'Name', 'width': 22},
    {'field': 'email', 'header': 'Email', 'width': 28},
    {'field': 'phone', 'header': 'Phone', 'width': 15},
    {'field': 'company', 'header': 'Company', 'width': 22},
    {'field': 'resourceKind', 'header': 'Type', 'width': 10},
    {'field': 'resourceTitle', 'header': 'Resource', 'width': 32},
    {'field': 'verified', 'header': 'Verified', 'width': 10},
]

CONTACT_COLUMNS = [
    {'field': 'createdAt', 'header': 'Received', 'width': 20},
    {'field': 'name', 'header': 'Name', 'width': 22},
    {'field': 'email', 'header': 'Email', 'width': 28},
    {'field': 'phone', 'header': 'Phone', 'width': 15},
    {'field': 'service', 'header': 'Subject', 'width': 24},
    {'field': 'message', 'header': 'Message', 'width': 60},
    {'field': 'isRead', 'header': 'Read', 'width': 8},
]

EXPORT_FORMATS = {
    'xlsx': 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    'csv': 'text/csv',
}


def _cell_value(value):
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'Yes' if value else 'No'
    if isinstance(value, datetime):
        return value.strftime('%Y-%m-%d %H:%M:%S')
    return value


class ExportService:

    @staticmethod
    def export_to_excel(
        data: List[Dict[str, Any]],
        columns: List[Dict[str, str]],
        sheet_name: str = 'Sheet1',
        title: str = 'Export'
    ) -> io.BytesIO:
        """
        Write rows to a styled workbook

        Args:
            data: rows as dicts
            columns: [{"field": ..., "header": ..., "width": ...}, ...]
            sheet_name: worksheet name
            title: banner in the first row

        Returns:
            BytesIO positioned at 0
        """
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = sheet_name

        header_font = Font(size=11, bold=True, color='FFFFFF')
        header_fill = PatternFill(start_color='1E3A5F', end_color='1E3A5F', fill_type='solid')
        border = Border(
            left=Side(style='thin', color='E5E7EB'),
            right=Side(style='thin', color='E5E7EB'),
            top=Side(style='thin', color='E5E7EB'),
            bottom=Side(style='thin', color='E5E7EB')
        )

        ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(columns))
        title_cell = ws.cell(row=1, column=1, value=title)
        title_cell.font = Font(size=14, bold=True)
        title_cell.alignment = Alignment(horizontal='center', vertical='center')
        ws.row_dimensions[1].height = 26

        ws.merge_cells(start_row=2, start_column=1, end_row=2, end_column=len(columns))
        stamp = ws.cell(row=2, column=1, value=f"Exported: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        stamp.font = Font(size=9, color='6B7280')
        stamp.alignment = Alignment(horizontal='center')

        for col_idx, col_def in enumerate(columns, start=1):
            cell = ws.cell(row=3, column=col_idx, value=col_def['header'])
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal='center', vertical='center')
            cell.border = border
            ws.column_dimensions[get_column_letter(col_idx)].width = col_def.get('width', 15)

        for row_idx, row in enumerate(data, start=4):
            for col_idx, col_def in enumerate(columns, start=1):
                value = _cell_value(row.get(col_def['field']))
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.border = border
                # Numbers right-aligned
                horizontal = 'right' if isinstance(value, (int, float)) else 'left'
                cell.alignment = Alignment(horizontal=horizontal, vertical='top', wrap_text=True)

        # Keep banner and header visible
        ws.freeze_panes = 'A4'

        output = io.BytesIO()
        wb.save(output)
        output.seek(0)
        return output

    @staticmethod
    def export_to_csv(data: List[Dict[str, Any]], columns: List[Dict[str, str]]) -> io.BytesIO:
        text = io.StringIO()
        writer = csv.writer(text)
        writer.writerow([c['header'] for c in columns])
        for row in data:
            writer.writerow([_cell_value(row.get(c['field'])) for c in columns])
        # BOM so Excel opens UTF-8 names correctly
        output = io.BytesIO(text.getvalue().encode('utf-8-sig'))
        output.seek(0)
        return output

    @staticmethod
    def export(data, columns, fmt='xlsx', title='Export'):
        """(stream, mimetype, extension)"""
        if fmt == 'csv':
            return ExportService.export_to_csv(data, columns), EXPORT_FORMATS['csv'], 'csv'
        stream = ExportService.export_to_excel(data, columns, sheet_name=title[:31], title=title)
        return stream, EXPORT_FORMATS['xlsx'], 'xlsx'
