from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import text

from amble.extensions import db
from amble.services.search_service import SearchParams, build_search_params, matches_query, search_files
from amble.services.storage import ConversionJob, ConversionStatus, StoredFile
from amble.services.storage.impl_local import LocalBlobStore
from amble.services.storage.impl_memory import InMemoryBlobStore, InMemoryConversionRepository, InMemoryFileRepository
from amble.services.storage.impl_sqlalchemy import SqlAlchemyConversionRepository, SqlAlchemyFileRepository

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_file(file_id, name, tags=(), minutes=0, **extra):
    return StoredFile(
        id=file_id,
        name=name,
        original_name=name,
        extension=name.rsplit('.', 1)[-1],
        media_type=None,
        file_size=10,
        storage_key=f'uploads/{file_id}',
        tags=list(tags),
        upload_date=BASE_TIME + timedelta(minutes=minutes),
        **extra,
    )


def seed(repo):
    repo.insert(make_file('a', 'Algebra notes.md', tags=['study', 'math'], minutes=1, description='Linear equations'))
    repo.insert(make_file('b', 'Holiday photo.png', tags=['travel'], minutes=2, topic='Summer'))
    repo.insert(make_file('c', 'budget.csv', tags=['finance', 'study-group'], minutes=3, content_text='rent food travel'))
    return repo


@pytest.fixture(params=['memory', 'sqlalchemy'])
def file_repo(request):
    if request.param == 'memory':
        yield InMemoryFileRepository()
        return
    app = request.getfixturevalue('app')
    with app.app_context():
        yield SqlAlchemyFileRepository()


def test_insert_get_and_list_newest_first(file_repo):
    seed(file_repo)
    assert file_repo.get('a').name == 'Algebra notes.md'
    assert file_repo.get('a').upload_date == BASE_TIME + timedelta(minutes=1)
    assert file_repo.get('missing') is None
    assert [r.id for r in file_repo.list()] == ['c', 'b', 'a']


def test_duplicate_insert_fails(file_repo):
    file_repo.insert(make_file('a', 'x.txt'))
    with pytest.raises(Exception):
        file_repo.insert(make_file('a', 'y.txt'))


def test_update_and_delete(file_repo):
    seed(file_repo)
    updated = file_repo.update('b', download_count=4, tags=['travel', 'beach'])
    assert updated.download_count == 4
    assert file_repo.get('b').tags == ['travel', 'beach']
    assert file_repo.update('missing', download_count=1) is None
    with pytest.raises(AttributeError):
        file_repo.update('b', colour='red')

    assert file_repo.delete('b') is True
    assert file_repo.delete('b') is False
    assert file_repo.get('b') is None


@pytest.mark.parametrize('query,expected', [
    ('#study', ['c', 'a']),
    ('#travel', ['b']),
    ('travel', ['c', 'b']),
    ('linear', ['a']),
    ('summer photo', ['b']),
    ('#study rent', ['c']),
    ('nothing-matches', []),
])
def test_search(file_repo, query, expected):
    seed(file_repo)
    assert [r.id for r in file_repo.search(query)] == expected


@pytest.mark.parametrize('query', ['#café', '#CAFÉ', '#caf', 'crème', 'été'])
def test_search_non_ascii_terms(file_repo, query):
    file_repo.insert(make_file('a', 'menu.txt', tags=['Café', 'crème'], description='ÉTÉ specials'))
    file_repo.insert(make_file('b', 'plain.txt', tags=['coffee'], minutes=1))
    assert [r.id for r in file_repo.search(query)] == ['a']


def test_tags_are_stored_as_readable_json(app):
    with app.app_context():
        SqlAlchemyFileRepository().insert(make_file('a', 'menu.txt', tags=['café']))
        stored = db.session.execute(text("SELECT tags FROM files WHERE id = 'a'")).scalar_one()
    assert 'café' in stored


def test_matches_query_rules():
    record = make_file('a', 'Report.txt', tags=['Work'])
    assert matches_query(record, '')
    assert matches_query(record, '#wor')
    assert matches_query(record, 'REPORT')
    assert not matches_query(record, '#home report')


def test_search_files_paginates_and_filters():
    repo = InMemoryFileRepository()
    for i in range(12):
        repo.insert(make_file(f'f{i}', f'file{i:02d}.{"csv" if i % 2 else "txt"}', minutes=i))
    repo.insert(make_file('hidden', 'secret.csv', minutes=30, is_public=False))

    page = search_files(repo, SearchParams(page=2, per_page=5))
    assert page.total == 12
    assert page.pages == 3
    assert [r.id for r in page.items] == ['f6', 'f5', 'f4', 'f3', 'f2']

    csv_only = search_files(repo, SearchParams(file_types=['csv'], sort_by='name', sort_order='asc', per_page=20))
    assert [r.id for r in csv_only.items] == ['f1', 'f3', 'f5', 'f7', 'f9', 'f11']


def test_build_search_params_sanitizes_input():
    config = {'SEARCH_DEFAULT_PER_PAGE': 9, 'SEARCH_MAX_PER_PAGE': 50, 'SEARCH_DEFAULT_SORT_BY': 'upload_date'}
    params = build_search_params(
        {'q': '  #study ', 'page': 'abc', 'per_page': '500', 'sort_by': 'size', 'sort_order': 'ASC',
         'file_types': 'CSV, .pdf'},
        config,
    )
    assert params.keyword == '#study'
    assert params.page == 1
    assert params.per_page == 50
    assert params.sort_by == 'upload_date'
    assert params.sort_order == 'asc'
    assert params.file_types == ['csv', 'pdf']


def test_conversion_repositories(app):
    job = ConversionJob(id='j1', original_name='a.csv', source_format='csv', target_format='json',
                        status=ConversionStatus.COMPLETED, output_name='a.json', output_size=12)
    with app.app_context():
        for repo in (InMemoryConversionRepository(), SqlAlchemyConversionRepository()):
            repo.insert(job)
            stored = repo.get('j1')
            assert stored.status is ConversionStatus.COMPLETED
            assert stored.output_name == 'a.json'
            assert repo.update('j1', download_count=2).download_count == 2
            assert [j.id for j in repo.list()] == ['j1']
            assert repo.get('nope') is None


@pytest.mark.parametrize('store_factory', [
    lambda tmp_path: InMemoryBlobStore(),
    lambda tmp_path: LocalBlobStore(tmp_path / 'blobs'),
])
def test_blob_stores(tmp_path, store_factory):
    store = store_factory(tmp_path)
    store.put('uploads/one.txt', b'hello')
    assert store.get('uploads/one.txt') == b'hello'
    assert store.delete('uploads/one.txt') is True
    assert store.delete('uploads/one.txt') is False
    with pytest.raises(KeyError):
        store.get('uploads/one.txt')


def test_local_blob_store_rejects_escaping_keys(tmp_path):
    store = LocalBlobStore(tmp_path / 'blobs')
    with pytest.raises(KeyError):
        store.put('../outside.txt', b'x')
