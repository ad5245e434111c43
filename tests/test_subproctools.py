import pytest

from lnkretarget import configlayers
from lnkretarget import subproctools


@pytest.mark.parametrize('os_name', ['nt', 'posix'])
def test_arguments_with_spaces_are_quoted(monkeypatch, os_name) -> None:
    monkeypatch.setattr(subproctools.os, 'name', os_name)
    command = subproctools.fill_command(configlayers.DEFAULT_CONFIG['remote_query'], host='pc01')

    formatted = subproctools.format_command(command)

    quote_mark = '"' if os_name == 'nt' else "'"
    assert formatted.startswith('reg query ')
    assert f'{quote_mark}\\\\pc01\\HKLM\\SOFTWARE\\Microsoft\\Windows NT\\CurrentVersion\\ProfileList{quote_mark}' in formatted
    assert formatted.endswith(' /v ProfilesDirectory')


def test_quote_leaves_plain_arguments_alone(monkeypatch) -> None:
    monkeypatch.setattr(subproctools.os, 'name', 'nt')

    assert subproctools.quote('ProfilesDirectory') == 'ProfilesDirectory'
    assert subproctools.quote('') == '""'
    assert subproctools.quote('say "hi"') == '"say ""hi"""'
