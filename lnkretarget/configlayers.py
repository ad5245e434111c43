'''
lnkretarget reads an optional JSON config file. The user's file is laid over
DEFAULT_CONFIG: matching keys are overwritten, nested dictionaries are merged
rather than replaced, and any key the user leaves out keeps its default.

Example ~/.lnkretarget.json:

    {
        "backup_dirname": "LnkBackup",
        "profile_roots": {"modern": "D:\\\\Users"},
        "skip_users": ["Default User", "All Users", "Administrator"]
    }
'''
import copy
import json

from lnkretarget import pathclass
from lnkretarget import vlogging

log = vlogging.getLogger(__name__)

DEFAULT_CONFIG_FILE = '~/.lnkretarget.json'

DEFAULT_CONFIG = {
    # Backups go into this subdirectory next to the original shortcut, and
    # directories with this name are never searched for shortcuts.
    'backup_dirname': 'Backup',
    'shortcut_pattern': '*.lnk',
    # Tested in this order, on the host's own drive.
    'profile_roots': {
        'modern': 'C:\\Users',
        'legacy': 'C:\\Documents and Settings',
    },
    # Substituted for %SystemDrive% in the registry's ProfilesDirectory value.
    'system_drive': 'C:',
    # Turns a path on a remote host into something we can open from here.
    # {drive} is the letter without the colon, {path} is the rest.
    'share_template': '\\\\{host}\\{drive}$\\{path}',
    # Asked of remote hosts whose profile root was not at a known location.
    'remote_query': [
        'reg',
        'query',
        '\\\\{host}\\HKLM\\SOFTWARE\\Microsoft\\Windows NT\\CurrentVersion\\ProfileList',
        '/v',
        'ProfilesDirectory',
    ],
    'remote_query_timeout': 30,
    # Left out of --all-users. These are junctions on modern Windows.
    'skip_users': ['All Users', 'Default User'],
}

CONFIG_TYPES = {
    'backup_dirname': str,
    'shortcut_pattern': str,
    'profile_roots': dict,
    'system_drive': str,
    'share_template': str,
    'remote_query': list,
    'remote_query_timeout': (int, float),
    'skip_users': list,
}

class ConfigException(Exception):
    pass

class BadConfig(ConfigException):
    pass

def recursive_dict_update(target, supply):
    '''
    Update target using supply, but when the value is a dictionary update the
    insides instead of replacing the dictionary itself. This prevents keys that
    exist in the target but don't exist in the supply from being erased.
    Note that we are modifying target in place.
    '''
    for (key, value) in supply.items():
        if isinstance(value, dict):
            existing = target.get(key, None)
            if existing is None:
                target[key] = value
            else:
                recursive_dict_update(target=existing, supply=value)
        else:
            target[key] = value

def validate(config):
    for (key, value) in config.items():
        expected = CONFIG_TYPES.get(key)
        if expected is None:
            log.warning('Unknown config key %r will be ignored.', key)
            continue
        if isinstance(value, bool) or not isinstance(value, expected):
            raise BadConfig(f'Config key {key!r} has the wrong type: {value!r}.')

    for (name, root) in config['profile_roots'].items():
        if not isinstance(root, str):
            raise BadConfig(f'Profile root {name!r} should be a string, not {root!r}.')

    if not config['remote_query'] or not all(isinstance(arg, str) for arg in config['remote_query']):
        raise BadConfig('remote_query should be a non-empty list of strings.')

    if not all(isinstance(user, str) for user in config['skip_users']):
        raise BadConfig('skip_users should be a list of strings.')

    if config['backup_dirname'].strip() == '':
        raise BadConfig('backup_dirname cannot be empty.')

    return config

def load_file(filepath, default_config=DEFAULT_CONFIG):
    '''
    Given a filepath to a user-supplied config file, and a dict of default
    values, return a new dict containing the user-supplied values overlaid onto
    the defaults. A missing file gives a copy of the defaults.
    '''
    path = pathclass.Path(filepath)

    # Start with the defaults so that keys the user does not specify
    # remain default.
    final_config = copy.deepcopy(default_config)

    if path.exists:
        log.debug('Loading config from %s.', path.absolute_path)
        try:
            with path.open('r', encoding='utf-8') as handle:
                user_config = json.load(handle)
        except json.JSONDecodeError as exc:
            raise BadConfig(f'{path.absolute_path} is not valid JSON: {exc}') from exc
        if not isinstance(user_config, dict):
            raise BadConfig(f'{path.absolute_path} should contain a JSON object.')
        recursive_dict_update(target=final_config, supply=user_config)

    return final_config

def load_config(filepath=None):
    '''
    Load the config for this run. An explicitly given filepath must exist,
    while the default file is optional.
    '''
    if filepath is None:
        filepath = DEFAULT_CONFIG_FILE
    else:
        pathclass.Path(filepath).assert_is_file()

    return validate(load_file(filepath))
