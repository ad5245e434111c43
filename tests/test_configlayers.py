import json

import pytest

from lnkretarget import configlayers
from lnkretarget import pathclass


def write_config(path, data):
    path.write_text(json.dumps(data), encoding='utf-8')
    return str(path)


def test_defaults_when_default_file_is_missing(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(configlayers, 'DEFAULT_CONFIG_FILE', str(tmp_path / 'missing.json'))

    config = configlayers.load_config()

    assert config == configlayers.DEFAULT_CONFIG
    assert config is not configlayers.DEFAULT_CONFIG


def test_user_file_is_layered_over_defaults(tmp_path) -> None:
    filepath = write_config(
        tmp_path / 'config.json',
        {'backup_dirname': 'LnkBackup', 'profile_roots': {'modern': 'D:\\Users'}},
    )

    config = configlayers.load_config(filepath)

    assert config['backup_dirname'] == 'LnkBackup'
    assert config['profile_roots'] == {
        'modern': 'D:\\Users',
        'legacy': 'C:\\Documents and Settings',
    }
    assert config['shortcut_pattern'] == '*.lnk'
    assert configlayers.DEFAULT_CONFIG['profile_roots']['modern'] == 'C:\\Users'


def test_nested_dicts_are_merged() -> None:
    target = {'a': 1, 'b': {'c': 2}}

    configlayers.recursive_dict_update(target=target, supply={'b': {'d': 3}, 'e': {'f': 4}})

    assert target == {'a': 1, 'b': {'c': 2, 'd': 3}, 'e': {'f': 4}}


def test_explicit_file_must_exist(tmp_path) -> None:
    with pytest.raises(pathclass.NotFile):
        configlayers.load_config(str(tmp_path / 'missing.json'))


@pytest.mark.parametrize(
    'data',
    [
        {'backup_dirname': 5},
        {'backup_dirname': '  '},
        {'remote_query_timeout': True},
        {'remote_query': []},
        {'skip_users': ['ok', 3]},
        {'profile_roots': {'modern': None}},
    ],
)
def test_bad_values_are_rejected(tmp_path, data) -> None:
    filepath = write_config(tmp_path / 'config.json', data)

    with pytest.raises(configlayers.BadConfig):
        configlayers.load_config(filepath)


def test_invalid_json_is_rejected(tmp_path) -> None:
    filepath = tmp_path / 'config.json'
    filepath.write_text('{not json', encoding='utf-8')

    with pytest.raises(configlayers.BadConfig):
        configlayers.load_config(str(filepath))
