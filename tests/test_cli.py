import sys
import io
import json
from unittest.mock import patch, Mock

import pytest

from cli import DONE_MESSAGE, main
from storage.users import UserCache


def _search_response(logins):
    resp = Mock()
    resp.status_code = 200
    resp.json.return_value = {'total_count': len(logins), 'items': [{'login': name} for name in logins]}
    return resp


@pytest.fixture(autouse=True)
def no_token(monkeypatch):
    monkeypatch.delenv('GITHUB_TOKEN', raising=False)


def test_noreply_only_runs_without_token(tmp_path, capsys):
    changelog = tmp_path / 'CHANGELOG.md'
    changelog.write_text("- Fix (1+alice@users.noreply.github.com)\n", encoding='utf-8')
    db = tmp_path / 'users.db'

    code = main(['-f', str(changelog), '-d', f'sqlite://{db}'])

    assert code == 0
    captured = capsys.readouterr()
    assert captured.out == "- Fix (@alice)\n"
    assert DONE_MESSAGE in captured.err


def test_in_place_writes_file(tmp_path, capsys):
    changelog = tmp_path / 'CHANGELOG.md'
    changelog.write_text("- A (2+bob@users.noreply.github.com)\n- B\n", encoding='utf-8')

    code = main(['-f', str(changelog), '-i', '-d', str(tmp_path / 'users.db')])

    assert code == 0
    assert changelog.read_text(encoding='utf-8') == "- A (@bob)\n- B\n"
    assert capsys.readouterr().out == ""


def test_in_place_requires_input_file(tmp_path):
    with pytest.raises(SystemExit):
        main(['-i', '-d', str(tmp_path / 'users.db')])


def test_reads_stdin_and_reports_unresolved(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(sys, 'stdin', io.StringIO("- C (carol@example.com)\n- D (dan@example.com)\n"))
    db = str(tmp_path / 'users.db')

    def fake_get(url, headers=None, params=None):
        return _search_response(['carol'] if params['q'] == 'carol@example.com' else [])

    with patch('ingest.github.requests.get', side_effect=fake_get):
        code = main(['-d', db, '--github-token', 't'])

    assert code == 0
    captured = capsys.readouterr()
    assert captured.out == "- C (@carol)\n- D (dan@example.com)\n"
    assert captured.err.strip().splitlines()[-1] == "dan@example.com"

    # the second run is served from the database
    monkeypatch.setattr(sys, 'stdin', io.StringIO("- C (carol@example.com)\n"))
    with patch('ingest.github.requests.get', side_effect=AssertionError('should not be called')):
        assert main(['-d', db]) == 0
    assert capsys.readouterr().out == "- C (@carol)\n"


def test_multiple_emails_fail_without_output(tmp_path, capsys):
    changelog = tmp_path / 'CHANGELOG.md'
    original = "- E (e@example.com, f@example.com)\n"
    changelog.write_text(original, encoding='utf-8')

    code = main(['-f', str(changelog), '-i', '-d', str(tmp_path / 'users.db')])

    assert code == 1
    assert changelog.read_text(encoding='utf-8') == original
    captured = capsys.readouterr()
    assert captured.out == ""
    assert DONE_MESSAGE not in captured.err


def test_missing_token_fails_when_lookup_needed(tmp_path, capsys):
    changelog = tmp_path / 'CHANGELOG.md'
    changelog.write_text("- G (gail@example.com)\n", encoding='utf-8')

    code = main(['-f', str(changelog), '-d', str(tmp_path / 'users.db')])

    assert code == 1
    assert capsys.readouterr().out == ""


def test_cache_actions(tmp_path, capsys):
    db = str(tmp_path / 'users.db')
    with UserCache(db) as cache:
        cache.insert('hank@example.com', 'hank')

    assert main(['-d', db, '--cache-info']) == 0
    assert json.loads(capsys.readouterr().out)['count'] == 1

    assert main(['-d', db, '--cache-get', 'hank@example.com']) == 0
    assert json.loads(capsys.readouterr().out)['username'] == 'hank'

    assert main(['-d', db, '--cache-list']) == 0
    assert [e['email'] for e in json.loads(capsys.readouterr().out)] == ['hank@example.com']

    assert main(['-d', db, '--cache-remove', 'hank@example.com', '--force']) == 0
    assert 'Removed 1 row(s)' in capsys.readouterr().out

    with UserCache(db) as cache:
        assert cache.get('hank@example.com') is None


def test_cache_clear_asks_for_confirmation(tmp_path, monkeypatch, capsys):
    db = str(tmp_path / 'users.db')
    with UserCache(db) as cache:
        cache.insert('ida@example.com', 'ida')

    monkeypatch.setattr('builtins.input', lambda prompt: 'n')
    assert main(['-d', db, '--cache-clear']) == 0
    assert 'Aborted' in capsys.readouterr().out
    with UserCache(db) as cache:
        assert cache.stats()['count'] == 1


def test_in_place_preserves_crlf_line_endings(tmp_path, capsys):
    changelog = tmp_path / 'CHANGELOG.md'
    changelog.write_bytes(b"# Changes\r\n- A (2+bob@users.noreply.github.com)\r\n- B\r\n")

    code = main(['-f', str(changelog), '-i', '-d', str(tmp_path / 'users.db')])

    assert code == 0
    assert changelog.read_bytes() == b"# Changes\r\n- A (@bob)\r\n- B\r\n"


def test_stdin_bytes_keep_crlf(tmp_path, monkeypatch, capsys):
    stdin = Mock()
    stdin.buffer = io.BytesIO(b"- A (3+cy@users.noreply.github.com)\r\n")
    monkeypatch.setattr(sys, 'stdin', stdin)

    assert main(['-d', str(tmp_path / 'users.db')]) == 0
    assert capsys.readouterr().out == "- A (@cy)\r\n"


def test_undecodable_input_exits_with_error(tmp_path, capsys):
    changelog = tmp_path / 'CHANGELOG.md'
    changelog.write_bytes(b"- A \xff\xfe (x@example.com)\n")

    assert main(['-f', str(changelog), '-d', str(tmp_path / 'users.db')]) == 1
    assert capsys.readouterr().out == ""


def test_unwritable_in_place_target_exits_with_error(tmp_path, monkeypatch):
    changelog = tmp_path / 'CHANGELOG.md'
    changelog.write_text("- A (4+dee@users.noreply.github.com)\n", encoding='utf-8')
    real_open = open

    def failing_open(path, mode='r', *args, **kwargs):
        if 'w' in mode and str(path) == str(changelog):
            raise PermissionError('read-only file system')
        return real_open(path, mode, *args, **kwargs)

    monkeypatch.setattr('builtins.open', failing_open)
    assert main(['-f', str(changelog), '-i', '-d', str(tmp_path / 'users.db')]) == 1
