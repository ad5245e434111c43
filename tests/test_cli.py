import json
import subprocess

import pytest

from lnkretarget import pipeable
from lnkretarget import retarget
from lnkretarget import shortcuts
from lnkretarget import subproctools
from lnkretarget import vlogging

from conftest import FakeBackend

OLD = 'C:\\Program Files\\Office15\\OUTLOOK.EXE'
NEW = 'C:\\Program Files\\Office16\\OUTLOOK.EXE'


@pytest.fixture(autouse=True)
def quiet_console(monkeypatch):
    # The console handler would otherwise hold on to pytest's capture stream.
    monkeypatch.setattr(vlogging, 'basic_config', lambda level: None)


@pytest.fixture
def backend(monkeypatch):
    backend = FakeBackend()
    monkeypatch.setattr(shortcuts, 'get_backend', lambda: backend)
    return backend


@pytest.fixture
def site(tmp_path, make_lnk):
    users = tmp_path / 'Users'
    make_lnk(users / 'alice' / 'Desktop' / 'Outlook.lnk', OLD)
    make_lnk(users / 'alice' / 'Desktop' / 'Notepad.lnk', 'C:\\Windows\\notepad.exe')
    make_lnk(users / 'bob' / 'Start Menu' / 'Outlook.lnk', OLD)
    (users / 'All Users').mkdir()
    config = {
        'profile_roots': {
            'modern': str(users),
            'legacy': str(tmp_path / 'Documents and Settings'),
        },
        'share_template': str(tmp_path / 'shares') + '/{host}/{drive}/{path}',
    }
    config_file = tmp_path / 'lnkretarget.json'
    config_file.write_text(json.dumps(config), encoding='utf-8')
    return (users, str(config_file))


def test_retarget_all_users_with_backup(site, backend, read_lnk, capsys) -> None:
    (users, config) = site

    status = retarget.main([
        'retarget', '--old', OLD, '--new', NEW,
        '--all-users', '--backup', '--yes', '--config', config,
    ])

    assert status == 0
    assert read_lnk(users / 'alice' / 'Desktop' / 'Outlook.lnk') == NEW
    assert read_lnk(users / 'bob' / 'Start Menu' / 'Outlook.lnk') == NEW
    assert read_lnk(users / 'alice' / 'Desktop' / 'Backup' / 'Outlook.lnk') == OLD
    assert read_lnk(users / 'alice' / 'Desktop' / 'Notepad.lnk') == 'C:\\Windows\\notepad.exe'
    out = capsys.readouterr().out
    assert '(modern)' in out
    assert 'rewritten 2' in out


def test_retarget_named_user_and_subdir(site, backend, read_lnk) -> None:
    (users, config) = site

    status = retarget.main([
        'retarget', '--old', OLD, '--new', NEW,
        '--users', 'bob', '--subdir', 'Start Menu', '--yes', '--config', config,
    ])

    assert status == 0
    assert read_lnk(users / 'bob' / 'Start Menu' / 'Outlook.lnk') == NEW
    assert read_lnk(users / 'alice' / 'Desktop' / 'Outlook.lnk') == OLD


def test_dry_run_changes_nothing(site, backend, read_lnk, capsys) -> None:
    (users, config) = site

    status = retarget.main([
        'retarget', '--old', OLD, '--new', NEW, '--all-users', '--dry-run', '--config', config,
    ])

    assert status == 0
    assert read_lnk(users / 'alice' / 'Desktop' / 'Outlook.lnk') == OLD
    assert 'would rewrite 2' in capsys.readouterr().out


def test_declined_confirmation(site, backend, read_lnk, monkeypatch) -> None:
    (users, config) = site
    monkeypatch.setattr(pipeable, 'stdin_tty', lambda: True)
    monkeypatch.setattr('builtins.input', lambda prompt='': 'n')

    status = retarget.main(['retarget', '--old', OLD, '--new', NEW, '--all-users', '--config', config])

    assert status == 1
    assert read_lnk(users / 'alice' / 'Desktop' / 'Outlook.lnk') == OLD


def test_accepted_confirmation(site, backend, read_lnk, monkeypatch) -> None:
    (users, config) = site
    monkeypatch.setattr(pipeable, 'stdin_tty', lambda: True)
    monkeypatch.setattr('builtins.input', lambda prompt='': 'y')

    status = retarget.main(['retarget', '--old', OLD, '--new', NEW, '--all-users', '--config', config])

    assert status == 0
    assert read_lnk(users / 'alice' / 'Desktop' / 'Outlook.lnk') == NEW


def test_no_terminal_means_no(site, backend, read_lnk, monkeypatch) -> None:
    (users, config) = site
    monkeypatch.setattr(pipeable, 'stdin_tty', lambda: None)

    status = retarget.main(['retarget', '--old', OLD, '--new', NEW, '--all-users', '--config', config])

    assert status == 1
    assert read_lnk(users / 'alice' / 'Desktop' / 'Outlook.lnk') == OLD


def test_same_old_and_new_is_an_error(site, backend) -> None:
    (users, config) = site

    status = retarget.main(['retarget', '--old', OLD, '--new', OLD.lower(), '--yes', '--config', config])

    assert status == 1


def test_unreachable_host_is_skipped(site, backend, read_lnk, monkeypatch, tmp_path) -> None:
    (users, config) = site
    hosts = tmp_path / 'hosts.txt'
    hosts.write_text('pc-offline\nlocalhost\n', encoding='utf-8')

    def run(command, timeout=None):
        raise subprocess.CalledProcessError(1, command, stderr='ERROR: The network path was not found.')

    monkeypatch.setattr(subproctools, 'run', run)

    status = retarget.main([
        'retarget', '--old', OLD, '--new', NEW, '--hosts', str(hosts),
        '--all-users', '--yes', '--config', config,
    ])

    assert status == 1
    assert read_lnk(users / 'alice' / 'Desktop' / 'Outlook.lnk') == NEW


def test_list_filters_by_target(site, backend, capsys) -> None:
    (users, config) = site

    status = retarget.main(['list', '--target', OLD, '--all-users', '--config', config])

    assert status == 0
    lines = capsys.readouterr().out.splitlines()
    listed = [line for line in lines if ' -> ' in line]
    assert len(listed) == 2
    assert all(line.endswith(OLD) for line in listed)


def test_profiles_lists_users(site, capsys) -> None:
    (users, config) = site

    status = retarget.main(['profiles', '--all-users', '--subdir', 'Desktop', '--config', config])

    assert status == 0
    out = capsys.readouterr().out
    assert 'alice:' in out
    assert 'bob:' in out
    assert 'All Users' not in out


def test_log_file(site, backend, tmp_path) -> None:
    (users, config) = site
    log_file = tmp_path / 'audit.log'

    try:
        status = retarget.main([
            'retarget', '--old', OLD, '--new', NEW, '--all-users', '--yes',
            '--config', config, '--log-file', str(log_file),
        ])
    finally:
        for handler in list(vlogging.root.handlers):
            if isinstance(handler, vlogging.FileHandler):
                vlogging.root.removeHandler(handler)
                handler.close()

    assert status == 0
    assert 'Rewrote' in log_file.read_text(encoding='utf-8')


def test_help(capsys) -> None:
    assert retarget.main(['retarget', '--help']) == 1
    err = capsys.readouterr().err
    assert '--old' in err
    assert '--log-file' in err

    assert retarget.main([]) == 1
    assert 'did not choose a command' in capsys.readouterr().err

    assert retarget.main(['helpall']) == 1
    assert 'profiles' in capsys.readouterr().err


def test_log_file_problems_are_reported(tmp_path, caplog) -> None:
    assert retarget.main(['profiles', '--log-file']) == 1
    assert '--log-file needs a filepath' in caplog.text

    # A directory cannot be opened as the log file.
    assert retarget.main(['profiles', '--log-file', str(tmp_path)]) == 1
    assert 'Could not set up logging' in caplog.text
