'''
lnkretarget
===========

Find the Windows shortcuts in user profiles that point at an old target, and
point them at a new one instead.

This is for the day after an application moves: Office gets reinstalled under
a new path, a file server is renamed, and every desktop and start menu
shortcut on the site still points at the old place.

The old and new targets can each be a literal path, or a directory of
reference shortcuts. A shortcut matches a reference directory when it points
where one of the references points. It is then replaced by the reference
with the same filename from the new directory, which brings the new icon and
arguments along too.

Profiles are found under C:\\Users or C:\\Documents and Settings, on this
machine or on other hosts through their C$ share.
'''
import argparse
import sys

from lnkretarget import betterhelp
from lnkretarget import configlayers
from lnkretarget import getpermission
from lnkretarget import outcomes
from lnkretarget import pathclass
from lnkretarget import pipeable
from lnkretarget import profiles
from lnkretarget import shortcuts
from lnkretarget import spinal
from lnkretarget import targets
from lnkretarget import vlogging

log = vlogging.getLogger(__name__, 'lnkretarget')

class Shortcut:
    def __init__(self, path, target):
        self.path = path
        self.target = target

    def __repr__(self):
        return f'Shortcut({self.path.absolute_path!r} -> {self.target!r})'

class Action:
    '''
    One planned rewrite.

    replacement:
        Either the new target string, or the pathclass.Path of a reference
        shortcut to copy over this one. None if the new reference directory
        had nothing suitable.

    backup:
        Where to copy the original first, or None for no backup.
    '''
    def __init__(self, shortcut, match, replacement, backup=None):
        self.shortcut = shortcut
        self.match = match
        self.replacement = replacement
        self.backup = backup

    def __repr__(self):
        return f'Action({self.shortcut!r}, replacement={self.replacement!r})'

    def __str__(self):
        if self.replacement is None:
            replacement = '(no replacement)'
        elif self.is_copy:
            replacement = f'copy of {self.replacement.absolute_path}'
        else:
            replacement = self.replacement
        return f'{self.shortcut.path.absolute_path}: {self.shortcut.target} -> {replacement}'

    @property
    def is_copy(self):
        return isinstance(self.replacement, pathclass.Path)

class Summary:
    def __init__(self):
        self.scanned = 0
        self.outcomes = {outcome: 0 for outcome in outcomes.ALL}
        self.failed_hosts = []

    def __str__(self):
        counts = [f'{outcome} {count}' for (outcome, count) in self.outcomes.items()]
        counts = ', '.join(counts)
        return f'Scanned {self.scanned} shortcuts: {counts}, failed hosts {len(self.failed_hosts)}.'

    @property
    def ok(self):
        return not self.failed_hosts and self.outcomes[outcomes.FAILED] == 0

    def record(self, outcome):
        self.outcomes[outcome] += 1

def find_shortcuts(
        directory,
        *,
        backend,
        pattern='*.lnk',
        backup_dirname='Backup',
    ):
    '''
    Yield a Shortcut for every shortcut file in the directory tree.

    Directories named backup_dirname are not entered, so our own backups are
    never rewritten by a later run. A directory that does not exist yields
    nothing. Shortcuts that cannot be read and directories that cannot be
    listed are logged and skipped.
    '''
    directory = pathclass.Path(directory)
    if not directory.is_dir:
        log.debug('%s does not exist, nothing to search.', directory.absolute_path)
        return

    def permission_denied(exc):
        log.warning('Cannot list %s: %s', exc.filename, exc.strerror)

    exclude = {backup_dirname} if backup_dirname else None
    walker = spinal.walk(
        directory,
        callback_permission_denied=permission_denied,
        exclude_directories=exclude,
        glob_filenames=pattern,
    )
    for path in walker:
        try:
            target = backend.read_target(path)
        except shortcuts.ShortcutReadError as exc:
            log.warning('Skipping unreadable shortcut: %s', exc)
            continue
        log.loud('%s -> %s', path.absolute_path, target)
        yield Shortcut(path, target)

def plan(found, old, new, *, backup_dirname=None):
    '''
    Yield an Action for each of the found Shortcuts that matches the old
    TargetSpec. If backup_dirname is given, each Action carries a backup
    destination in that subdirectory next to the shortcut.
    '''
    for shortcut in found:
        match = old.find_match(shortcut.target)
        if match is None:
            continue

        replacement = new.replacement_for(shortcut.path, match)
        if backup_dirname:
            backup = shortcut.path.parent.with_child(backup_dirname).with_child(shortcut.path.basename)
        else:
            backup = None
        yield Action(shortcut, match, replacement, backup)

def apply(action, *, backend, dry_run=False):
    '''
    Carry out one Action and return its outcome sentinel.
    '''
    path = action.shortcut.path

    if action.replacement is None:
        log.warning('No replacement shortcut for %s, leaving it alone.', path.absolute_path)
        return outcomes.NO_REPLACEMENT

    if dry_run:
        log.info('Would rewrite %s.', action)
        return outcomes.WOULD_REWRITE

    try:
        if action.backup is not None:
            spinal.copy_file(path, action.backup, overwrite=True)
            log.debug('Backed up %s to %s.', path.absolute_path, action.backup.absolute_path)

        if action.is_copy:
            spinal.copy_file(action.replacement, path, overwrite=True)
        else:
            backend.write_target(path, action.replacement)
    except (OSError, shortcuts.ShortcutWriteError, spinal.SpinalException) as exc:
        log.error('Failed to rewrite %s: %s', path.absolute_path, exc)
        return outcomes.FAILED

    log.info('Rewrote %s.', action)
    return outcomes.REWRITTEN

def apply_actions(actions, *, backend, dry_run=False, summary=None):
    if summary is None:
        summary = Summary()
    for action in actions:
        summary.record(apply(action, backend=backend, dry_run=dry_run))
    return summary

def plan_directory(
        directory,
        old,
        new,
        *,
        backend,
        backup=False,
        backup_dirname='Backup',
        pattern='*.lnk',
        summary=None,
    ):
    found = list(find_shortcuts(directory, backend=backend, pattern=pattern, backup_dirname=backup_dirname))
    if summary is not None:
        summary.scanned += len(found)
    return list(plan(found, old, new, backup_dirname=backup_dirname if backup else None))

def retarget_directory(
        directory,
        old,
        new,
        *,
        backend,
        backup=False,
        backup_dirname='Backup',
        dry_run=False,
        pattern='*.lnk',
    ):
    '''
    Rewrite every shortcut under the directory that points at old so that it
    points at new. old and new are TargetSpecs from targets.resolve_target.

    Returns a Summary. A directory that does not exist is not an error, the
    summary is simply empty.
    '''
    summary = Summary()
    actions = plan_directory(
        directory,
        old,
        new,
        backend=backend,
        backup=backup,
        backup_dirname=backup_dirname,
        pattern=pattern,
        summary=summary,
    )
    return apply_actions(actions, backend=backend, dry_run=dry_run, summary=summary)

def collect_profiles(hosts, *, config, users=None, all_users=False, summary=None):
    '''
    Resolve each host's profile root and its user profiles, printing a line
    per host. Hosts that fail are logged, added to summary.failed_hosts, and
    skipped.
    '''
    collected = []
    for (host, root) in profiles.iter_profile_roots(hosts, config):
        if isinstance(root, profiles.ProfileException):
            log.warning('Skipping host %s', root)
            if summary is not None:
                summary.failed_hosts.append(host)
            continue

        pipeable.stdout(f'{root.display_host}: {root.path.absolute_path} ({root.convention})')
        try:
            found = profiles.get_profiles(
                root,
                users=users,
                all_users=all_users,
                skip_users=config['skip_users'],
            )
        except profiles.ProfileException as exc:
            log.warning('Skipping host %s', exc)
            if summary is not None:
                summary.failed_hosts.append(host)
            continue
        for profile in found:
            log.debug('%s: profile %s at %s.', root.display_host, profile.user, profile.path.absolute_path)
        collected.extend(found)
    return collected

def search_directory(profile, subdir=None):
    if subdir:
        return profile.path.join(subdir)
    return profile.path

def retarget_hosts(
        hosts,
        old,
        new,
        *,
        backend,
        config,
        all_users=False,
        backup=False,
        confirm=None,
        dry_run=False,
        subdir=None,
        users=None,
    ):
    '''
    The whole pipeline: every host, every selected user, every shortcut under
    <profile>/<subdir>.

    All Actions are planned and printed before anything is written. If
    `confirm` is given it is called with the number of Actions and the
    rewrite only proceeds if it returns True.

    Returns (summary, proceeded).
    '''
    summary = Summary()
    found_profiles = collect_profiles(
        hosts,
        config=config,
        users=users,
        all_users=all_users,
        summary=summary,
    )

    actions = []
    for profile in found_profiles:
        actions.extend(plan_directory(
            search_directory(profile, subdir),
            old,
            new,
            backend=backend,
            backup=backup,
            backup_dirname=config['backup_dirname'],
            pattern=config['shortcut_pattern'],
            summary=summary,
        ))

    for action in actions:
        pipeable.stdout(action)

    if not actions:
        log.info('No shortcuts point at %s.', old)
        return (summary, True)

    if confirm is not None and not dry_run and not confirm(len(actions)):
        log.info('Nothing was rewritten.')
        return (summary, False)

    apply_actions(actions, backend=backend, dry_run=dry_run, summary=summary)
    return (summary, True)

# COMMAND LINE
################################################################################

def handle_errors(gateway):
    '''
    Report bad input as a log line and status 1 instead of a stacktrace.
    '''
    def wrapped(args):
        try:
            return gateway(args)
        except (
            ValueError,
            configlayers.ConfigException,
            pathclass.PathclassException,
            shortcuts.ShortcutException,
        ) as exc:
            log.error('%s: %s', type(exc).__name__, exc)
            return 1
    return wrapped

def _hosts_users(args):
    hosts = profiles.normalize_hosts(pipeable.input_many(args.hosts))
    if args.users:
        users = pipeable.input_many(args.users)
    else:
        users = None
    return (hosts, users)

def _confirm(count):
    return getpermission.getpermission(f'Rewrite {count} shortcuts?')

@handle_errors
def retarget_argparse(args):
    config = configlayers.load_config(args.config)
    backend = shortcuts.get_backend()
    pattern = config['shortcut_pattern']

    old = targets.resolve_target(args.old, backend=backend, pattern=pattern, role='old target')
    new = targets.resolve_target(args.new, backend=backend, pattern=pattern, role='new target')
    if old.is_literal and new.is_literal and shortcuts.same_target(old.value, new.value):
        raise ValueError('The old and new targets are the same.')

    log.info('Old target: %s', old)
    log.info('New target: %s', new)

    (hosts, users) = _hosts_users(args)
    (summary, proceeded) = retarget_hosts(
        hosts,
        old,
        new,
        backend=backend,
        config=config,
        all_users=args.all_users,
        backup=args.backup,
        confirm=None if args.yes else _confirm,
        dry_run=args.dry_run,
        subdir=args.subdir,
        users=users,
    )
    pipeable.stdout(summary)

    if not proceeded:
        return 1
    return 0 if summary.ok else 1

@handle_errors
def list_argparse(args):
    config = configlayers.load_config(args.config)
    backend = shortcuts.get_backend()

    if args.target is not None:
        wanted = targets.resolve_target(args.target, backend=backend, pattern=config['shortcut_pattern'])
    else:
        wanted = None

    (hosts, users) = _hosts_users(args)
    summary = Summary()
    found_profiles = collect_profiles(
        hosts,
        config=config,
        users=users,
        all_users=args.all_users,
        summary=summary,
    )
    for profile in found_profiles:
        found = find_shortcuts(
            search_directory(profile, args.subdir),
            backend=backend,
            pattern=config['shortcut_pattern'],
            backup_dirname=config['backup_dirname'],
        )
        for shortcut in found:
            if wanted is not None and wanted.find_match(shortcut.target) is None:
                continue
            pipeable.stdout(f'{shortcut.path.absolute_path} -> {shortcut.target}')

    return 0 if summary.ok else 1

@handle_errors
def profiles_argparse(args):
    config = configlayers.load_config(args.config)
    (hosts, users) = _hosts_users(args)
    summary = Summary()
    found_profiles = collect_profiles(
        hosts,
        config=config,
        users=users,
        all_users=args.all_users,
        summary=summary,
    )
    for profile in found_profiles:
        pipeable.stdout(f'    {profile.user}: {search_directory(profile, args.subdir).absolute_path}')
    return 0 if summary.ok else 1

def add_profile_arguments(parser):
    parser.add_argument(
        '--hosts',
        nargs='+',
        default=['localhost'],
        help='''
        Host names to search. Each may also be a text file with one host per
        line, !i to read from stdin, or !c to read the clipboard. Remote hosts
        are reached through their C$ share.
        ''',
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        '--users',
        nargs='+',
        default=None,
        help='''
        User names whose profiles are searched. Accepts files, !i and !c like
        --hosts. The default is the user running this program.
        ''',
    )
    group.add_argument(
        '--all_users',
        '--all-users',
        dest='all_users',
        action='store_true',
        help='''
        Search every profile on each host, except the skip_users in the
        config file.
        ''',
    )
    parser.add_argument(
        '--subdir',
        default=None,
        help='''
        Only search this subdirectory of each profile, e.g. Desktop or
        "AppData\\Roaming\\Microsoft\\Windows\\Start Menu".
        ''',
    )
    parser.add_argument(
        '--config',
        default=None,
        help=f'''
        A JSON config file laid over the defaults. If not given,
        {configlayers.DEFAULT_CONFIG_FILE} is used when it exists.
        ''',
    )

@pipeable.ctrlc_return1
@vlogging.main_decorator
def main(argv):
    parser = argparse.ArgumentParser(description=__doc__)
    subparsers = parser.add_subparsers()

    ################################################################################################

    p_retarget = subparsers.add_parser(
        'retarget',
        description='''
        Point the shortcuts that target --old at --new instead.

        Everything that will change is printed first, and you are asked to
        confirm unless --yes or --dry_run is given.
        ''',
    )
    p_retarget.examples = [
        {
            'args': '--old "C:\\Program Files\\Office15\\OUTLOOK.EXE" --new "C:\\Program Files\\Office16\\OUTLOOK.EXE" --all-users --backup',
            'comment': 'Literal targets, every profile on this machine, keeping backups.',
        },
        {
            'args': '--old \\\\fs01\\refs\\old --new \\\\fs01\\refs\\new --hosts hosts.txt --all-users --subdir Desktop --dry-run',
            'comment': 'Reference directories, the desktops of every host in hosts.txt, without writing anything.',
        },
    ]
    p_retarget.add_argument(
        '--old',
        required=True,
        help='''
        The target to look for: a literal path, or a directory of reference
        shortcuts whose targets are looked for.
        ''',
    )
    p_retarget.add_argument(
        '--new',
        required=True,
        help='''
        The replacement: a literal path written into each matching shortcut,
        or a directory of reference shortcuts. A matching shortcut is replaced
        by the reference with the same filename as the old reference it
        matched, or its own filename if --old is a literal.
        ''',
    )
    add_profile_arguments(p_retarget)
    p_retarget.add_argument(
        '--backup',
        action='store_true',
        help='''
        Copy each shortcut into a Backup folder beside it before rewriting it.
        ''',
    )
    p_retarget.add_argument(
        '--dry_run',
        '--dry-run',
        dest='dry_run',
        action='store_true',
        help='''
        Show what would be rewritten without writing anything.
        ''',
    )
    p_retarget.add_argument(
        '--yes',
        action='store_true',
        help='''
        Do not ask for confirmation.
        ''',
    )
    p_retarget.set_defaults(func=retarget_argparse)

    ################################################################################################

    p_list = subparsers.add_parser(
        'list',
        description='''
        Print every shortcut in the profiles along with its target.
        ''',
    )
    p_list.examples = [
        '--all-users --subdir Desktop',
        {'args': '--target "C:\\Program Files\\Office15\\OUTLOOK.EXE" --hosts pc01 pc02 --all-users', 'comment': 'Which shortcuts would retarget touch?'},
    ]
    p_list.add_argument(
        '--target',
        default=None,
        help='''
        Only print shortcuts pointing here. A literal path or a directory of
        reference shortcuts, just like retarget --old.
        ''',
    )
    add_profile_arguments(p_list)
    p_list.set_defaults(func=list_argparse)

    ################################################################################################

    p_profiles = subparsers.add_parser(
        'profiles',
        description='''
        Print the profile root of each host, how it was found, and the user
        profiles that would be searched.
        ''',
    )
    p_profiles.examples = [
        '--hosts pc01 pc02 --all-users',
        {'args': '--hosts !i --all-users', 'comment': 'Host names piped in on stdin.'},
    ]
    add_profile_arguments(p_profiles)
    p_profiles.set_defaults(func=profiles_argparse)

    return betterhelp.go(parser, argv, program_name='lnkretarget')

def entrypoint():
    raise SystemExit(main(sys.argv[1:]))

if __name__ == '__main__':
    raise SystemExit(main(sys.argv[1:]))
