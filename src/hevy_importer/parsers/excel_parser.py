"""
Excel Parser

Reduces .xlsx/.xlsm workbooks to named sheets of string cells:
- every sheet in workbook order
- cached formula values instead of formulas
- blank rows dropped, trailing empty cells trimmed
"""

import datetime
import io
import logging
from typing import Any, List

from openpyxl import load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from hevy_importer.errors import DocumentError

from .base import BaseParser
from .models import FileInfo, Sheet, WorkbookDocument

logger = logging.getLogger(__name__)


class ExcelParser(BaseParser):
    """Parser for Excel (.xlsx) files"""

    EXTENSIONS = ['.xlsx', '.xlsm']

    def parse(self, content: bytes, file_info: FileInfo) -> WorkbookDocument:
        """Parse an Excel workbook into a WorkbookDocument"""
        try:
            wb = load_workbook(io.BytesIO(content), data_only=True)
        except Exception as e:
            raise DocumentError(f"Failed to read Excel file {file_info.filename}: {e}") from e

        try:
            sheets = [
                Sheet(name=sheet_name, rows=self._read_rows(wb[sheet_name]))
                for sheet_name in wb.sheetnames
            ]
        finally:
            wb.close()

        total_rows = sum(len(sheet.rows) for sheet in sheets)
        logger.info(
            f"Read workbook {file_info.filename}: {len(sheets)} sheet(s), {total_rows} non-empty row(s)"
        )
        return WorkbookDocument(filename=file_info.filename, sheets=sheets)

    def _read_rows(self, ws: Worksheet) -> List[List[str]]:
        rows = []
        for values in ws.iter_rows(values_only=True):
            cells = [self._format_cell(value) for value in values]
            while cells and not cells[-1]:
                cells.pop()
            if cells:
                rows.append(cells)
        return rows

    @staticmethod
    def _format_cell(value: Any) -> str:
        """Render a cell the way it reads in the sheet"""
        if value is None:
            return ""
        if isinstance(value, bool):
            return "TRUE" if value else "FALSE"
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, datetime.datetime):
            if value.time() == datetime.time(0, 0):
                return value.date().isoformat()
            return value.isoformat(sep=" ")
        return str(value).strip()
