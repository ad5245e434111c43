'''
Finding the user profile directories on each host.

Windows keeps profiles under C:\\Users, or C:\\Documents and Settings on
older machines. The local machine is checked directly. Remote machines are
checked through their administrative share (\\\\host\\C$\\Users). If neither
known location exists, the host's registry is asked for its
ProfilesDirectory.

A host that cannot be reached or has no recognizable profile root is
reported and skipped. The caller moves on to the next host.
'''
import getpass
import os
import re
import socket
import subprocess

from lnkretarget import pathclass
from lnkretarget import subproctools
from lnkretarget import vlogging

log = vlogging.getLogger(__name__)

LOCAL_HOSTS = {'', '.', 'localhost', '127.0.0.1', '::1'}

CONVENTION_REGISTRY = 'registry'

class ProfileException(Exception):
    def __init__(self, host, reason):
        self.host = host
        self.reason = reason
        self.args = (f'{host}: {reason}',)

class HostUnreachable(ProfileException):
    pass

class ProfileRootNotFound(ProfileException):
    pass

class ProfileRoot:
    '''
    host:
        The host name as given by the user, or None for the local machine.

    path:
        The profile root as a Path we can open from this machine.

    local_path:
        The profile root as the host itself sees it, like C:\\Users.

    convention:
        Which check found it: a key of the profile_roots config ("modern",
        "legacy") or "registry".
    '''
    def __init__(self, host, path, local_path, convention):
        self.host = host
        self.path = path
        self.local_path = local_path
        self.convention = convention

    def __repr__(self):
        return f'ProfileRoot({self.display_host!r}, {self.path.absolute_path!r}, {self.convention!r})'

    @property
    def display_host(self):
        return self.host or socket.gethostname()

class Profile:
    def __init__(self, root, user, path):
        self.root = root
        self.user = user
        self.path = path

    def __repr__(self):
        return f'Profile({self.root.display_host!r}, {self.user!r})'

def admin_share(host, local_path, template):
    '''
    Map a drive-letter path on the given host to the path we would use to
    open it from here, e.g. ("pc01", "C:\\Users") -> "\\\\pc01\\C$\\Users".

    Raises ValueError if local_path does not start with a drive letter.
    '''
    match = re.match(r'^([A-Za-z]):[\\/]*(.*)$', local_path)
    if not match:
        raise ValueError(f'{local_path!r} does not start with a drive letter.')

    (drive, remainder) = match.groups()
    remainder = os.sep.join(part for part in re.split(r'[\\/]+', remainder) if part)
    shared = template.format(host=host, drive=drive.upper(), path=remainder)
    return pathclass.Path(shared.rstrip('\\/') or shared)

def is_local_host(host):
    if host is None:
        return True
    host = host.strip().casefold()
    if host in LOCAL_HOSTS:
        return True
    hostname = socket.gethostname().casefold()
    return host == hostname or host == hostname.split('.')[0]

def normalize_hosts(hosts):
    '''
    Strip leading backslashes from names like \\\\pc01, drop blanks, and drop
    duplicates while keeping the order.
    '''
    seen = set()
    normalized = []
    for host in hosts:
        host = host.strip().lstrip('\\/')
        if not host:
            continue
        key = host.casefold()
        if key in seen:
            continue
        seen.add(key)
        normalized.append(host)
    return normalized

def parse_profiles_directory(output, system_drive):
    '''
    Pull the ProfilesDirectory value out of `reg query` output like:

    HKEY_LOCAL_MACHINE\\SOFTWARE\\Microsoft\\Windows NT\\CurrentVersion\\ProfileList
        ProfilesDirectory    REG_EXPAND_SZ    %SystemDrive%\\Users

    and expand %SystemDrive%. Returns None if the value is missing or still
    contains other variables after expansion.
    '''
    match = re.search(r'^\s*ProfilesDirectory\s+REG_\w+\s+(.+?)\s*$', output, flags=re.MULTILINE)
    if not match:
        return None

    value = match.group(1)
    value = re.sub(r'%SystemDrive%', lambda m: system_drive, value, flags=re.IGNORECASE)
    if '%' in value:
        log.debug('Cannot expand %r.', value)
        return None
    return value

def query_remote_profiles_directory(host, config):
    '''
    Run the configured remote_query against the host and return its
    ProfilesDirectory, or None if the output did not contain one.

    Raises HostUnreachable if the command fails to run, exits with an error,
    or times out.
    '''
    command = subproctools.fill_command(config['remote_query'], host=host)
    try:
        output = subproctools.run(command, timeout=config['remote_query_timeout'])
    except subprocess.TimeoutExpired as exc:
        raise HostUnreachable(host, f'{command[0]} timed out after {exc.timeout} seconds.') from exc
    except subprocess.CalledProcessError as exc:
        reason = (exc.stderr or exc.stdout or '').strip() or f'exit status {exc.returncode}'
        raise HostUnreachable(host, f'{command[0]} failed: {reason}') from exc
    except OSError as exc:
        raise HostUnreachable(host, f'Could not run {command[0]}: {exc}') from exc

    return parse_profiles_directory(output, config['system_drive'])

def resolve_profile_root(host, config):
    '''
    Return the ProfileRoot of the given host, testing the configured
    locations in order and falling back to the registry for remote hosts.

    Raises HostUnreachable or ProfileRootNotFound.
    '''
    local = is_local_host(host)
    if local:
        host = None

    for (convention, local_path) in config['profile_roots'].items():
        if local:
            path = pathclass.Path(local_path)
        else:
            try:
                path = admin_share(host, local_path, config['share_template'])
            except ValueError as exc:
                log.debug('Skipping %s profile root: %s', convention, exc)
                continue

        log.debug('Trying %s profile root %s.', convention, path.absolute_path)
        if path.is_dir:
            return ProfileRoot(host, path, local_path, convention)

    tried = ', '.join(config['profile_roots'].values())
    if local:
        raise ProfileRootNotFound(socket.gethostname(), f'None of {tried} exist.')

    log.debug('%s has none of %s, asking the registry.', host, tried)
    local_path = query_remote_profiles_directory(host, config)
    if local_path is None:
        raise ProfileRootNotFound(host, 'The registry has no usable ProfilesDirectory.')

    try:
        path = admin_share(host, local_path, config['share_template'])
    except ValueError as exc:
        raise ProfileRootNotFound(host, str(exc)) from exc

    if not path.is_dir:
        raise ProfileRootNotFound(host, f'{path.absolute_path} is not accessible.')

    return ProfileRoot(host, path, local_path, CONVENTION_REGISTRY)

def iter_profile_roots(hosts, config):
    '''
    Yield (host, ProfileRoot) for each host, or (host, ProfileException) when
    the host failed. No host is retried.
    '''
    for host in hosts:
        try:
            root = resolve_profile_root(host, config)
        except ProfileException as exc:
            yield (host, exc)
        else:
            yield (host, root)

def _user_profile(root, user):
    try:
        path = root.path.with_child(user)
    except ValueError:
        log.warning('%r is not a valid user name.', user)
        return None

    if not path.is_dir:
        log.warning('%s has no profile for %s at %s.', root.display_host, user, path.absolute_path)
        return None

    return Profile(root, user, path)

def get_profiles(root, *, users=None, all_users=False, skip_users=()):
    '''
    Return the Profiles to search under the given root.

    users:
        A list of user names. Missing profiles are skipped with a warning.

    all_users:
        Every directory in the root, except links, junctions, and names in
        skip_users.

    With neither, the user running this program.
    '''
    if users and all_users:
        raise ValueError('Give either users or all_users, not both.')

    if all_users:
        skip = {user.casefold() for user in skip_users}
        profiles = []
        try:
            children = root.path.listdir_directories()
        except OSError as exc:
            raise ProfileRootNotFound(root.display_host, f'Cannot list {root.path.absolute_path}: {exc.strerror}') from exc

        for path in children:
            if path.basename.casefold() in skip:
                log.debug('Skipping profile %s.', path.basename)
                continue
            if path.is_link:
                log.debug('Skipping linked profile %s.', path.basename)
                continue
            profiles.append(Profile(root, path.basename, path))
        return profiles

    if not users:
        users = [getpass.getuser()]

    profiles = (_user_profile(root, user) for user in users)
    return [profile for profile in profiles if profile is not None]
