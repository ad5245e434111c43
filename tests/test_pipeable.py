import io
import sys
import types

from lnkretarget import pipeable


def test_literal_argument() -> None:
    assert pipeable.input('pc01') == ['pc01']


def test_file_argument(tmp_path) -> None:
    hosts = tmp_path / 'hosts.txt'
    hosts.write_text('pc01\n\n  pc02  \n', encoding='utf-8')

    assert pipeable.input(str(hosts)) == ['pc01', 'pc02']


def test_stdin_argument(monkeypatch) -> None:
    monkeypatch.setattr(sys, 'stdin', io.StringIO('pc01\npc02\n'))

    assert pipeable.input('!i') == ['pc01', 'pc02']


def test_clipboard_argument(monkeypatch) -> None:
    fake = types.SimpleNamespace(paste=lambda: 'alice\r\nbob\r\n')
    monkeypatch.setitem(sys.modules, 'pyperclip', fake)

    assert pipeable.input('!c') == ['alice', 'bob']


def test_input_many(tmp_path) -> None:
    hosts = tmp_path / 'hosts.txt'
    hosts.write_text('pc02\npc03\n', encoding='utf-8')

    assert pipeable.input_many(['pc01', str(hosts)]) == ['pc01', 'pc02', 'pc03']


def test_ctrlc_return1(capsys) -> None:
    @pipeable.ctrlc_return1
    def interrupted():
        raise KeyboardInterrupt()

    assert interrupted() == 1
    assert 'Interrupted' in capsys.readouterr().err
