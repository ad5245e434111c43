'''
Reading and writing the target of Windows shortcut (lnk) files.

Windows lnks keep more than a target: arguments, working directory, icon and
so on. We only ever touch the target through these two operations, which go
through the Shell COM interface using winshell:

    read_target(path) -> str
    write_target(path, target)

Everything else in lnkretarget asks get_backend() for an object with those two
methods, so the rest of the program never imports win32 modules directly.
'''
# import winshell moved to stay lazy, it only imports on Windows.
import os

from lnkretarget import pathclass
from lnkretarget import vlogging

log = vlogging.getLogger(__name__)

class ShortcutException(Exception):
    pass

class ShortcutReadError(ShortcutException):
    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        self.args = (f'Could not read {path}: {reason}',)

class ShortcutWriteError(ShortcutException):
    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        self.args = (f'Could not write {path}: {reason}',)

class WinshellBackend:
    def __init__(self):
        import pywintypes
        import winshell
        self.winshell = winshell
        self.errors = (OSError, pywintypes.error, pywintypes.com_error)

    def read_target(self, path):
        path = pathclass.Path(path)
        try:
            return self.winshell.Shortcut(path.absolute_path).path
        except self.errors as exc:
            raise ShortcutReadError(path, exc) from exc

    def write_target(self, path, target):
        path = pathclass.Path(path)
        log.debug('Writing target %s into %s.', target, path.absolute_path)
        try:
            # Leaving the context writes the lnk back to the same file.
            with self.winshell.Shortcut(path.absolute_path) as link:
                link.path = target
        except self.errors as exc:
            raise ShortcutWriteError(path, exc) from exc

def get_backend():
    if os.name != 'nt':
        raise ShortcutException(
            'Reading shortcuts requires Windows and winshell. '
            'Pass a different backend to use lnkretarget elsewhere.'
        )
    return WinshellBackend()

def normalize_target(target):
    '''
    Prepare a target path string for comparison: surrounding whitespace and
    double quotes are removed, forward slashes become backslashes, and case is
    folded, because Windows paths are case-insensitive.
    '''
    if target is None:
        return ''
    target = target.strip().strip('"').strip()
    target = target.replace('/', '\\')
    return target.casefold()

def same_target(a, b):
    a = normalize_target(a)
    b = normalize_target(b)
    return bool(a) and a == b
