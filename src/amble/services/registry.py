"""Converter registry keyed by ordered (source, target) format pairs."""
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from amble.services.decoder import SourceFile
from amble.services.formats import FileFormat

Handler = Callable[[SourceFile, FileFormat], bytes]

_HANDLERS: Dict[Tuple[FileFormat, FileFormat], Handler] = {}


def register(sources: Iterable[FileFormat], targets: Iterable[FileFormat]):
    """Register the decorated handler for every (source, target) combination.

    A pair may only be registered once so that dispatch stays unambiguous.
    """
    sources = tuple(sources)
    targets = tuple(targets)

    def decorator(func: Handler) -> Handler:
        for source in sources:
            for target in targets:
                key = (FileFormat(source), FileFormat(target))
                if key in _HANDLERS:
                    raise ValueError(
                        f"Converter for {key[0].value}->{key[1].value} already registered by {_HANDLERS[key].__name__}"
                    )
                _HANDLERS[key] = func
        return func

    return decorator


def get_handler(source: FileFormat, target: FileFormat) -> Optional[Handler]:
    return _HANDLERS.get((source, target))


def registered_pairs() -> List[Tuple[str, str]]:
    return [(s.value, t.value) for s, t in _HANDLERS]
