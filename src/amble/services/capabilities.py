"""Static mapping of source extension -> ordered list of target formats.

Drives the format pickers of the UI and rejects invalid conversion requests
before any converter runs.
"""
from typing import Dict, List, Tuple

from amble.utils.file_utils import extension_of

_CAPABILITIES: Dict[str, Tuple[str, ...]] = {
    # Text formats
    'txt': ('pdf',),
    'md': ('pdf', 'html', 'txt'),
    'html': ('pdf', 'txt'),
    'log': ('pdf', 'txt'),

    # Data formats
    'csv': ('json', 'xlsx', 'pdf', 'txt'),
    'json': ('csv', 'xlsx', 'txt'),
    'xlsx': ('csv', 'json', 'txt'),
    'xls': ('csv', 'json', 'txt'),

    # Image formats
    'jpg': ('pdf', 'png', 'webp'),
    'jpeg': ('pdf', 'png', 'webp'),
    'png': ('pdf', 'jpg', 'webp'),
    'webp': ('pdf', 'jpg', 'png'),
    'gif': ('pdf', 'jpg', 'png'),
    'bmp': ('pdf', 'jpg', 'png'),
}


def supported_targets(filename: str) -> List[str]:
    """Target format tokens available for `filename`, empty for unknown extensions."""
    return list(_CAPABILITIES.get(extension_of(filename), ()))


def supported_source_formats() -> List[str]:
    return list(_CAPABILITIES)


def capability_table() -> Dict[str, List[str]]:
    return {source: list(targets) for source, targets in _CAPABILITIES.items()}


def capability_pairs() -> List[Tuple[str, str]]:
    return [(source, target) for source, targets in _CAPABILITIES.items() for target in targets]
