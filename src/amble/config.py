import json
import os
from functools import partial
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parents[2]


def load_environment() -> None:
    """Load variables from the project .env file without overriding the process environment."""
    load_dotenv(BASE_DIR / '.env')


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key')

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///amble.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # JSON columns (tags) keep non-ASCII text as-is so it can be searched
    SQLALCHEMY_ENGINE_OPTIONS = {'json_serializer': partial(json.dumps, ensure_ascii=False)}

    # Uploads
    MAX_UPLOAD_MB = int(os.environ.get('MAX_UPLOAD_MB', 50))
    MAX_CONTENT_LENGTH = MAX_UPLOAD_MB * 1024 * 1024

    # Storage backends: repositories (sqlalchemy | memory), blobs (local | memory)
    REPOSITORY_BACKEND = os.environ.get('REPOSITORY_BACKEND', 'sqlalchemy')
    BLOB_BACKEND = os.environ.get('BLOB_BACKEND', 'local')
    STORAGE_DIR = os.environ.get('STORAGE_DIR', str(BASE_DIR / 'storage'))

    # Searchable text extraction (markitdown)
    EXTRACT_TEXT_ON_UPLOAD = _env_bool('EXTRACT_TEXT_ON_UPLOAD', True)
    TEXT_EXTRACTION_TYPES = ['txt', 'md', 'html', 'log', 'csv', 'json', 'xlsx', 'xls']
    SEARCH_TEXT_MAX_LENGTH = int(os.environ.get('SEARCH_TEXT_MAX_LENGTH', 100000))

    # Search
    SEARCH_DEFAULT_PER_PAGE = int(os.environ.get('SEARCH_DEFAULT_PER_PAGE', 9))
    SEARCH_MAX_PER_PAGE = int(os.environ.get('SEARCH_MAX_PER_PAGE', 100))
    SEARCH_DEFAULT_SORT_BY = os.environ.get('SEARCH_DEFAULT_SORT_BY', 'upload_date')

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_DIR = os.environ.get('LOG_DIR', str(BASE_DIR / 'logs'))
    LOG_BACKUP_COUNT = int(os.environ.get('LOG_BACKUP_COUNT', 3))
    LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
    LOG_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
