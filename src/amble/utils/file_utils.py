import os
import time
import uuid


def split_extension(filename):
    """
    Split a file name into (stem, extension).

    The extension is the lowercased text after the final '.', or '' when the
    name has no dot. Directory components are dropped.
    """
    base = os.path.basename(filename or '')
    if '.' not in base:
        return base, ''
    stem, ext = base.rsplit('.', 1)
    return stem, ext.lower()


def extension_of(filename):
    return split_extension(filename)[1]


def replace_extension(filename, new_extension):
    """Return the base name of `filename` with its final extension replaced."""
    stem, _ = split_extension(filename)
    return f"{stem}.{new_extension}"


def generate_id():
    return uuid.uuid4().hex


def build_storage_key(prefix, filename):
    """Build a unique blob key like `uploads/1700000000000_ab12cd.csv`."""
    ext = extension_of(filename)
    suffix = f".{ext}" if ext else ''
    return f"{prefix}/{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}{suffix}"


def format_file_size(num_bytes):
    """Human readable file size, e.g. 1536 -> '1.5 KB'."""
    if not num_bytes:
        return '0 Bytes'
    units = ['Bytes', 'KB', 'MB', 'GB']
    value = float(num_bytes)
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    value = round(value, 2)
    if value == int(value):
        value = int(value)
    return f"{value} {units[i]}"
