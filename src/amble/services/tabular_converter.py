"""CSV / JSON / spreadsheet transforms.

CSV -> JSON splits naively on newlines and commas: quoted fields containing a
comma or a newline are not supported. The spreadsheet paths (CSV -> XLSX)
use the quote-aware `csv` reader like a spreadsheet codec would.
"""
import csv
import datetime
import io
import json
import logging
from typing import Any, Dict, Iterable, List, Sequence

import openpyxl
import xlrd
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

from amble.services.errors import InsufficientData, InvalidInput, InvalidShape

logger = logging.getLogger(__name__)

DEFAULT_SHEET_TITLE = 'Sheet1'
_ZIP_SIGNATURE = b'PK\x03\x04'


# ---------------- CSV <-> JSON ---------------- #
def _split_csv_line(line: str) -> List[str]:
    return [cell.strip().strip('"') for cell in line.split(',')]


def parse_csv_records(text: str) -> List[Dict[str, str]]:
    """Parse CSV text into one dict per data row, keyed by the header row."""
    lines = [line for line in text.split('\n') if line.strip()]
    if len(lines) < 2:
        raise InsufficientData('CSV must have a header row and at least one data row')

    headers = _split_csv_line(lines[0])
    records = []
    for line in lines[1:]:
        values = _split_csv_line(line)
        records.append({header: (values[i] if i < len(values) else '') for i, header in enumerate(headers)})
    return records


def csv_to_json(text: str) -> str:
    records = parse_csv_records(text)
    logger.debug("Parsed %d CSV rows", len(records))
    return json.dumps(records, indent=2, ensure_ascii=False)


def load_json_records(text: str) -> List[Dict[str, Any]]:
    """Parse JSON text that must be a non-empty array of objects."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidInput(f"Invalid JSON: {e}") from e

    if not isinstance(data, list) or not data:
        raise InvalidShape('JSON must be a non-empty array of objects')
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise InvalidShape(f"JSON array item {index} is not an object")
    return data


def collect_headers(records: Iterable[Dict[str, Any]]) -> List[str]:
    """Union of all keys, in first-seen order."""
    headers: Dict[str, None] = {}
    for record in records:
        for key in record:
            headers.setdefault(key, None)
    return list(headers)


def format_cell(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(',', ':'))
    return str(value)


def write_csv(rows: Iterable[Sequence[Any]]) -> str:
    buffer = io.StringIO()
    # QUOTE_MINIMAL quotes fields holding the delimiter, a quote or a newline and doubles inner quotes
    writer = csv.writer(buffer, lineterminator='\n', quoting=csv.QUOTE_MINIMAL)
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue().rstrip('\n')


def json_to_csv(text: str) -> str:
    records = load_json_records(text)
    headers = collect_headers(records)
    rows = [headers] + [[format_cell(record.get(header)) for header in headers] for record in records]
    return write_csv(rows)


# ---------------- Spreadsheets ---------------- #
def _coerce_number(value: str) -> Any:
    stripped = value.strip()
    if not stripped:
        return None
    try:
        return int(stripped)
    except ValueError:
        pass
    try:
        number = float(stripped)
    except ValueError:
        return value
    # Keep things like 'nan' / 'inf' as text
    return number if number == number and abs(number) != float('inf') else value


def _normalize_cell(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    return value


def _sheet_value(value: Any) -> Any:
    if isinstance(value, str):
        return ILLEGAL_CHARACTERS_RE.sub('', value)
    return value


def _build_workbook(rows: Iterable[Sequence[Any]]) -> bytes:
    """Write rows as literal values; text is never stored as a formula."""
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.title = DEFAULT_SHEET_TITLE
    for row_index, row in enumerate(rows, start=1):
        for column_index, value in enumerate(row, start=1):
            if value is None:
                continue
            cell = sheet.cell(row=row_index, column=column_index, value=_sheet_value(value))
            if cell.data_type == 'f':
                cell.data_type = 's'
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def csv_to_xlsx(text: str) -> bytes:
    rows = [[_coerce_number(cell) for cell in row] for row in csv.reader(io.StringIO(text))]
    rows = [row for row in rows if any(cell is not None for cell in row)]
    if not rows:
        raise InsufficientData('CSV has no rows to write')
    return _build_workbook(rows)


def json_to_xlsx(text: str) -> bytes:
    records = load_json_records(text)
    headers = collect_headers(records)
    rows = [headers]
    for record in records:
        row = []
        for header in headers:
            value = record.get(header)
            row.append(format_cell(value) if isinstance(value, (dict, list)) else value)
        rows.append(row)
    return _build_workbook(rows)


def _openpyxl_rows(content: bytes) -> List[List[Any]]:
    workbook = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    try:
        if not workbook.worksheets:
            return []
        sheet = workbook.worksheets[0]
        return [list(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _xlrd_rows(content: bytes) -> List[List[Any]]:
    book = xlrd.open_workbook(file_contents=content)
    if book.nsheets == 0:
        return []
    sheet = book.sheet_by_index(0)
    rows = []
    for r in range(sheet.nrows):
        row = []
        for cell in sheet.row(r):
            if cell.ctype == xlrd.XL_CELL_EMPTY or cell.ctype == xlrd.XL_CELL_BLANK:
                row.append(None)
            elif cell.ctype == xlrd.XL_CELL_DATE:
                row.append(xlrd.xldate.xldate_as_datetime(cell.value, book.datemode))
            elif cell.ctype == xlrd.XL_CELL_BOOLEAN:
                row.append(bool(cell.value))
            else:
                row.append(cell.value)
        rows.append(row)
    return rows


def read_sheet_rows(content: bytes, legacy: bool = False) -> List[List[Any]]:
    """Rows of the first worksheet, trailing empty rows dropped.

    Legacy .xls content goes through xlrd unless it is really a zip (xlsx)
    container with the wrong extension.
    """
    if legacy and not content.startswith(_ZIP_SIGNATURE):
        rows = _xlrd_rows(content)
    else:
        rows = _openpyxl_rows(content)
    rows = [[_normalize_cell(value) for value in row] for row in rows]
    while rows and all(value is None or value == '' for value in rows[-1]):
        rows.pop()
    if not rows:
        raise InsufficientData('Spreadsheet has no data in its first sheet')
    return rows


def sheet_to_csv(rows: List[List[Any]]) -> str:
    return write_csv([format_cell(value) for value in row] for row in rows)


def sheet_to_records(rows: List[List[Any]]) -> List[Dict[str, Any]]:
    """First row is the header; empty cells are left out of each record."""
    headers = [format_cell(value) for value in rows[0]]
    records = []
    for row in rows[1:]:
        record: Dict[str, Any] = {}
        for index, value in enumerate(row):
            if value is None or value == '' or index >= len(headers):
                continue
            record[headers[index] or f"__EMPTY_{index}"] = value
        if record:
            records.append(record)
    return records


def sheet_to_json(rows: List[List[Any]]) -> str:
    return json.dumps(sheet_to_records(rows), indent=2, ensure_ascii=False, default=str)
