import json

from click.testing import CliRunner

from amble.cli import cli
from tests.samples import CSV_TEXT, make_image


def test_formats_command():
    runner = CliRunner()
    result = runner.invoke(cli, ['formats', 'data.json'])
    assert result.exit_code == 0
    assert result.output.strip() == 'csv, xlsx, txt'


def test_convert_file_writes_output(tmp_path):
    src = tmp_path / 'people.csv'
    src.write_text(CSV_TEXT, encoding='utf-8')

    runner = CliRunner()
    result = runner.invoke(cli, ['convert-file', str(src), '-t', 'json'])
    assert result.exit_code == 0, result.output
    records = json.loads((tmp_path / 'people.json').read_text(encoding='utf-8'))
    assert records[0] == {'name': 'Alice', 'age': '30', 'city': 'Paris'}


def test_convert_file_custom_output(tmp_path):
    src = tmp_path / 'readme.md'
    src.write_text('# Hello', encoding='utf-8')
    out = tmp_path / 'page.html'

    result = CliRunner().invoke(cli, ['convert-file', str(src), '-t', 'html', '-o', str(out)])
    assert result.exit_code == 0
    assert '<h1>Hello</h1>' in out.read_text(encoding='utf-8')


def test_convert_file_failure_exits_nonzero(tmp_path):
    src = tmp_path / 'notes.txt'
    src.write_text('hello', encoding='utf-8')

    result = CliRunner().invoke(cli, ['convert-file', str(src), '-t', 'xlsx'])
    assert result.exit_code == 1
    assert not (tmp_path / 'notes.xlsx').exists()


def test_convert_dir(tmp_path):
    src_dir = tmp_path / 'in'
    (src_dir / 'nested').mkdir(parents=True)
    (src_dir / 'a.png').write_bytes(make_image('PNG'))
    (src_dir / 'nested' / 'b.jpg').write_bytes(make_image('JPEG'))
    (src_dir / 'notes.csv').write_text(CSV_TEXT, encoding='utf-8')
    out_dir = tmp_path / 'out'

    result = CliRunner().invoke(cli, ['convert-dir', str(src_dir), '-o', str(out_dir), '-t', 'pdf'])
    assert result.exit_code == 0, result.output
    assert 'total=3 success=3 failed=0' in result.output
    assert (out_dir / 'a.pdf').read_bytes().startswith(b'%PDF')
    assert (out_dir / 'nested' / 'b.pdf').exists()
    assert (out_dir / 'notes.pdf').exists()


def test_convert_dir_skips_ineligible_and_subdirs(tmp_path):
    src_dir = tmp_path / 'in'
    (src_dir / 'nested').mkdir(parents=True)
    (src_dir / 'a.png').write_bytes(make_image('PNG'))
    (src_dir / 'b.txt').write_text('no webp for text', encoding='utf-8')
    (src_dir / 'nested' / 'c.png').write_bytes(make_image('PNG'))
    out_dir = tmp_path / 'out'

    result = CliRunner().invoke(cli, ['convert-dir', str(src_dir), '-o', str(out_dir), '-t', 'webp', '--no-recursive'])
    assert result.exit_code == 0
    assert 'total=1 success=1 failed=0' in result.output
    assert (out_dir / 'a.webp').exists()
    assert not (out_dir / 'nested').exists()
