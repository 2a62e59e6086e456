import math
from dataclasses import dataclass, field
from typing import Generic, List, Mapping, Optional, Sequence, TypeVar

from amble.services.storage.records import StoredFile

ALLOWED_SORT_BY = {"upload_date", "name", "downloads"}
ALLOWED_SORT_ORDER = {"asc", "desc"}

T = TypeVar("T")


@dataclass
class SearchParams:
    """A data class to hold all search parameters."""
    keyword: Optional[str] = None
    sort_by: str = 'upload_date'
    sort_order: str = 'desc'
    page: int = 1
    per_page: int = 9
    file_types: Optional[List[str]] = None

    def normalized(self, app_config) -> "SearchParams":
        """Return a normalized copy with safe defaults."""
        sort_by = self.sort_by if self.sort_by in ALLOWED_SORT_BY else app_config.get("SEARCH_DEFAULT_SORT_BY", "upload_date")
        sort_order = self.sort_order if self.sort_order in ALLOWED_SORT_ORDER else "desc"
        page = self.page if isinstance(self.page, int) and self.page > 0 else 1
        per_page_default = app_config.get("SEARCH_DEFAULT_PER_PAGE", 9)
        per_page = self.per_page if isinstance(self.per_page, int) and self.per_page > 0 else per_page_default
        per_page = min(per_page, app_config.get("SEARCH_MAX_PER_PAGE", 100))
        return SearchParams(
            keyword=(self.keyword or '').strip() or None,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            per_page=per_page,
            file_types=self.file_types,
        )


def build_search_params(args: Mapping, app_config) -> SearchParams:
    """Parse and normalize request args into SearchParams."""
    keyword = args.get("keyword") or args.get("q")
    sort_by = args.get("sort_by", app_config.get("SEARCH_DEFAULT_SORT_BY", "upload_date"))
    sort_order = str(args.get("sort_order", "desc")).lower()
    try:
        page = int(args.get("page", 1))
    except (TypeError, ValueError):
        page = 1
    try:
        per_page = int(args.get("per_page", app_config.get("SEARCH_DEFAULT_PER_PAGE", 9)))
    except (TypeError, ValueError):
        per_page = app_config.get("SEARCH_DEFAULT_PER_PAGE", 9)

    file_types_raw = args.get("file_types")
    file_types = None
    if file_types_raw:
        file_types = [ft.strip().lower().lstrip('.') for ft in str(file_types_raw).split(",") if ft.strip()]

    params = SearchParams(
        keyword=keyword,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        per_page=per_page,
        file_types=file_types,
    )
    return params.normalized(app_config)


def split_query(query: Optional[str]):
    """Split a query into (tag_terms, plain_terms); '#study' becomes tag term 'study'."""
    terms = [t for t in (query or '').lower().split() if t]
    tag_terms = [t[1:] for t in terms if t.startswith('#') and len(t) > 1]
    plain_terms = [t for t in terms if not t.startswith('#')]
    return tag_terms, plain_terms


def searchable_text(record: StoredFile) -> str:
    parts = [
        record.name,
        record.original_name,
        record.topic or '',
        record.description or '',
        *(record.tags or []),
        record.content_text or '',
    ]
    return ' '.join(parts).lower()


def matches_query(record: StoredFile, query: Optional[str]) -> bool:
    """
    Tag terms ('#x') need at least one record tag containing x; every plain
    term must appear in the searchable text. An empty query matches everything.
    """
    tag_terms, plain_terms = split_query(query)
    if tag_terms:
        tags = [tag.lower() for tag in (record.tags or [])]
        if not any(term in tag for term in tag_terms for tag in tags):
            return False
    if plain_terms:
        text = searchable_text(record)
        return all(term in text for term in plain_terms)
    return True


@dataclass
class Page(Generic[T]):
    items: List[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 9

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.per_page) if self.per_page else 0

    def to_dict(self, serialize=lambda item: item.to_dict()) -> dict:
        return {
            'items': [serialize(item) for item in self.items],
            'total': self.total,
            'page': self.page,
            'per_page': self.per_page,
            'total_pages': self.pages,
        }


def paginate(items: Sequence[T], page: int, per_page: int) -> Page[T]:
    start = (page - 1) * per_page
    return Page(items=list(items[start:start + per_page]), total=len(items), page=page, per_page=per_page)


def _sort_files(records: List[StoredFile], sort_by: str, sort_order: str) -> List[StoredFile]:
    reverse = sort_order == 'desc'
    if sort_by == 'name':
        return sorted(records, key=lambda r: r.name.lower(), reverse=reverse)
    if sort_by == 'downloads':
        return sorted(records, key=lambda r: r.download_count, reverse=reverse)
    return sorted(records, key=lambda r: r.upload_date, reverse=reverse)


def search_files(repository, params: SearchParams) -> Page[StoredFile]:
    """Search public files in `repository` and return the requested page."""
    records = repository.search(params.keyword) if params.keyword else repository.list()
    records = [r for r in records if r.is_public]
    if params.file_types:
        records = [r for r in records if r.extension in params.file_types]
    records = _sort_files(records, params.sort_by, params.sort_order)
    return paginate(records, params.page, params.per_page)
