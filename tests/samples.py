"""Sample payloads built in memory for converter, service and route tests."""
import io
import struct

import openpyxl
from PIL import Image

from amble.services.decoder import SourceFile

CSV_TEXT = "name,age,city\nAlice,30,Paris\nBob,25,Berlin\n"
JSON_TEXT = '[{"name": "Alice", "age": 30}, {"name": "Bob", "city": "Berlin"}]'
MARKDOWN_TEXT = "# Heading\n\nSome *emphasis* and `code`.\n"
HTML_TEXT = "<html><body><h1>Title</h1><p>Hello &amp; welcome</p></body></html>"


def make_image(fmt='PNG', size=(64, 48), mode='RGB', color=(200, 30, 30)):
    img = Image.new(mode, size, color)
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def make_xlsx(rows=(('name', 'age'), ('Alice', 30), ('Bob', 25))):
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(list(row))
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


# ---------------- Legacy .xls (BIFF8 in an OLE2 compound file) ---------------- #
_OLE_SIGNATURE = b'\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1'
_SECTOR_SIZE = 512
_MIN_REGULAR_STREAM = 4096
_FREE_SECTOR, _END_OF_CHAIN, _FAT_SECTOR = -1, -2, -3


def _biff_record(code, data=b''):
    return struct.pack('<HH', code, len(data)) + data


def _biff_text(text, length_bytes):
    raw = text.encode('utf-16-le')
    prefix = struct.pack('<B' if length_bytes == 1 else '<H', len(raw) // 2)
    return prefix + b'\x01' + raw


def _biff_bof(stream_type):
    return _biff_record(0x0809, struct.pack('<HHHHII', 0x0600, stream_type, 0x0DBB, 0x07CC, 0, 6))


def _biff_cell(row, col, value):
    if isinstance(value, bool):
        return _biff_record(0x0205, struct.pack('<HHHBB', row, col, 0, int(value), 0))
    if isinstance(value, (int, float)):
        return _biff_record(0x0203, struct.pack('<HHHd', row, col, 0, value))
    return _biff_record(0x0204, struct.pack('<HHH', row, col, 0) + _biff_text(str(value), 2))


def _biff_workbook(rows, sheet_name):
    columns = max((len(row) for row in rows), default=0)
    sheet = _biff_bof(0x0010) + _biff_record(0x0200, struct.pack('<IIHHH', 0, len(rows), 0, columns, 0))
    for r, row in enumerate(rows):
        for c, value in enumerate(row):
            if value is not None:
                sheet += _biff_cell(r, c, value)
    sheet += _biff_record(0x000A)

    def workbook_globals(sheet_offset):
        boundsheet = struct.pack('<iBB', sheet_offset, 0, 0) + _biff_text(sheet_name, 1)
        return (_biff_bof(0x0005) + _biff_record(0x0042, struct.pack('<H', 1200))
                + _biff_record(0x0085, boundsheet) + _biff_record(0x000A))

    # the sheet offset field has a fixed width, so a first pass gives the globals size
    return workbook_globals(len(workbook_globals(0))) + sheet


def _directory_entry(name='', entry_type=0, child=-1, start=0, size=0):
    encoded = (name + '\0').encode('utf-16-le') if name else b''
    return (encoded.ljust(64, b'\0')
            + struct.pack('<HBBiii', len(encoded), entry_type, 1 if name else 0, -1, -1, child)
            + b'\0' * 36
            + struct.pack('<iiI', start, size, 0))


def _compound_file(stream_name, stream):
    """One-stream OLE2 file: FAT in sector 0, directory in sector 1, stream after."""
    stream = stream.ljust(_MIN_REGULAR_STREAM, b'\0')
    stream = stream.ljust(-(-len(stream) // _SECTOR_SIZE) * _SECTOR_SIZE, b'\0')
    sectors = len(stream) // _SECTOR_SIZE
    fat = [_FAT_SECTOR, _END_OF_CHAIN] + list(range(3, sectors + 2)) + [_END_OF_CHAIN]
    fat += [_FREE_SECTOR] * (_SECTOR_SIZE // 4 - len(fat))
    directory = (_directory_entry('Root Entry', 5, child=1, start=_END_OF_CHAIN)
                 + _directory_entry(stream_name, 2, start=2, size=len(stream))
                 + _directory_entry() * 2)
    header = (_OLE_SIGNATURE + b'\0' * 16
              + struct.pack('<HHHHH', 0x003E, 0x0003, 0xFFFE, 9, 6) + b'\0' * 6
              + struct.pack('<i', 0)
              + struct.pack('<8i', 1, 1, 0, _MIN_REGULAR_STREAM, _END_OF_CHAIN, 0, _END_OF_CHAIN, 0)
              + struct.pack('<109i', 0, *([_FREE_SECTOR] * 108)))
    return header + struct.pack(f'<{len(fat)}i', *fat) + directory + stream


def make_xls(rows=(('name', 'age'), ('Alice', 30), ('Bob', 25)), sheet_name='Sheet1'):
    """A genuine BIFF8 .xls workbook with a single worksheet."""
    return _compound_file('Workbook', _biff_workbook([list(row) for row in rows], sheet_name))


_IMAGE_SAVE_FORMATS = {
    'jpg': 'JPEG', 'jpeg': 'JPEG', 'png': 'PNG', 'webp': 'WEBP', 'gif': 'GIF', 'bmp': 'BMP',
}


def sample_source(extension):
    """A small valid file of the given extension."""
    filename = f"sample.{extension}"
    if extension in _IMAGE_SAVE_FORMATS:
        return SourceFile(make_image(_IMAGE_SAVE_FORMATS[extension]), filename)
    if extension == 'xlsx':
        return SourceFile(make_xlsx(), filename)
    if extension == 'xls':
        return SourceFile(make_xls(), filename)
    text = {
        'txt': "hello world\nsecond line",
        'log': "2024-01-01 INFO started\n2024-01-01 INFO done",
        'md': MARKDOWN_TEXT,
        'html': HTML_TEXT,
        'csv': CSV_TEXT,
        'json': JSON_TEXT,
    }[extension]
    return SourceFile(text.encode('utf-8'), filename)
