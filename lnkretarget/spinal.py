'''
This module provides functions related to walking profile directories and
copying shortcut files around, for backups and for replacing a shortcut with
a reference copy.
'''
import collections
import os
import shutil

from lnkretarget import pathclass
from lnkretarget import vlogging

log = vlogging.getLogger(__name__)

class SpinalException(Exception):
    pass

class SourceNotFile(SpinalException):
    pass

class CopyResults:
    def __init__(self, source, destination):
        self.source = source
        self.destination = destination
        self.written = False

    def __repr__(self):
        return (
            f'CopyResults(source={self.source!r}, destination={self.destination!r}, '
            f'written={self.written})'
        )

def copy_file(
        source,
        destination,
        *,
        overwrite=True,
    ):
    '''
    Copy a file from one place to another, including its timestamps.

    source:
        The file to copy.

    destination:
        The filename of the new copy. If this is an existing directory, the
        copy goes inside it with the source's basename.

    overwrite:
        If False and the destination already exists, nothing is written.

    Returns a CopyResults with `source`, `destination` and `written`.
    '''
    source = pathclass.Path(source)
    if not source.is_file:
        raise SourceNotFile(source)

    destination = pathclass.Path(destination)
    if destination.is_dir:
        destination = destination.with_child(source.basename)

    results = CopyResults(source=source, destination=destination)

    if destination == source:
        log.debug('Not copying %s onto itself.', source.absolute_path)
        return results

    if destination.exists and not overwrite:
        return results

    destination.parent.makedirs(exist_ok=True)

    log.loud('Copying %s -> %s.', source.absolute_path, destination.absolute_path)
    shutil.copy2(source, destination)

    results.written = True
    return results

def normalize(text):
    '''
    Apply os.path.normpath and os.path.normcase.
    '''
    return os.path.normpath(os.path.normcase(text))

def walk(
        path='.',
        *,
        callback_permission_denied=None,
        exclude_directories=None,
        glob_filenames=None,
    ):
    '''
    Yield pathclass.Path objects for files in the tree, similar to os.walk.

    callback_permission_denied:
        If OSErrors (Permission Denied) occur when trying to list a directory,
        your function will be called with the exception object as the only
        argument, and the walk continues with the next directory.
        If not provided, the exception is raised.

    exclude_directories:
        A set of directories that will not be entered. Members can be absolute
        paths, glob patterns, or just plain names.
        For example: {'C:\\Users\\me\\Desktop\\Old', 'Backup'}

    glob_filenames:
        A set of glob patterns. Filenames will only be yielded if they match
        at least one of these patterns.

    Entries are visited in case-insensitive alphabetical order. Symlinked and
    junctioned directories are not entered, so a file is only yielded once
    even if a link elsewhere in the tree points back at its directory.

    raises pathclass.NotDirectory if the starting path is not an existing
    directory.
    '''
    if exclude_directories is not None:
        exclude_directories = {normalize(d) for d in exclude_directories}

    if glob_filenames is None:
        pass
    elif isinstance(glob_filenames, str):
        glob_filenames = {glob_filenames}
    else:
        glob_filenames = set(glob_filenames)

    path = pathclass.Path(path)
    path.assert_is_directory()

    def directory_excluded(basename, abspath):
        if exclude_directories is None:
            return False
        n_basename = os.path.normcase(basename)
        n_abspath = normalize(abspath)
        return any(
            n_basename == excluded or
            n_abspath == excluded or
            pathclass.fnmatch_name(n_basename, excluded)
            for excluded in exclude_directories
        )

    def filename_included(basename):
        if glob_filenames is None:
            return True
        return any(pathclass.fnmatch_name(basename, pattern) for pattern in glob_filenames)

    if directory_excluded(path.basename, path.absolute_path):
        return

    queue = collections.deque()
    queue.append(path)
    while queue:
        current = queue.pop()
        log.debug('Scanning %s.', current.absolute_path)

        try:
            entries = list(os.scandir(current))
        except OSError as exc:
            if callback_permission_denied is not None:
                callback_permission_denied(exc)
                continue
            raise

        entries = sorted(entries, key=lambda e: os.path.normcase(e.name))

        # Popping from the right makes this depth-first, so subdirectories are
        # appendleft'd to come back out in forward order.
        more_queue = collections.deque()
        for entry in entries:
            if entry.is_dir():
                child = current.with_child(entry.name)
                if child.is_link:
                    log.loud('Skipping linked directory %s.', entry.path)
                    continue
                if directory_excluded(entry.name, entry.path):
                    log.loud('Skipping excluded directory %s.', entry.path)
                    continue
                more_queue.appendleft(child)

            elif entry.is_file():
                if filename_included(entry.name):
                    yield current.with_child(entry.name)

        queue.extend(more_queue)
