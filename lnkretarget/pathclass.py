'''
Path objects that compare by normcase, so that Windows's case-insensitive
filenames behave correctly when we compare shortcut locations, reference
shortcut names, and user directories.
'''
import fnmatch
import os
import re

if os.name == 'nt':
    SEPS = {'\\', '/'}
else:
    SEPS = {'/'}

class PathclassException(Exception):
    pass

class NotDirectory(PathclassException):
    pass

class NotFile(PathclassException):
    pass

class Path:
    def __init__(self, path):
        if isinstance(path, Path):
            self.absolute_path = path.absolute_path
            return

        path = os.fspath(path)

        if not isinstance(path, str):
            raise TypeError(f'path must be {Path} or {str}, not {type(path)}.')

        path = os.path.expanduser(path)
        path = os.path.abspath(path)
        self.absolute_path = path

    def __eq__(self, other):
        if not isinstance(other, (Path, str)):
            try:
                other = os.fspath(other)
            except TypeError:
                return False

        if not isinstance(other, Path):
            other = Path(other)

        return self.normcase == other.normcase

    def __fspath__(self):
        return self.absolute_path

    def __hash__(self):
        return hash(self.normcase)

    def __lt__(self, other):
        # Sort by normcase so that names sort alphabetically regardless of case.
        return self.normcase < other.normcase

    def __repr__(self):
        return f'{self.__class__.__name__}({repr(self.absolute_path)})'

    def assert_is_file(self):
        if not self.is_file:
            raise NotFile(self)

    def assert_is_directory(self):
        if not self.is_dir:
            raise NotDirectory(self)

    @property
    def basename(self):
        return os.path.basename(self.absolute_path)

    @property
    def exists(self):
        return os.path.exists(self)

    def glob_files(self, pattern):
        children = (e.name for e in os.scandir(self) if e.is_file())
        children = fnmatch_filter(children, pattern)
        return sorted(self.with_child(c) for c in children)

    @property
    def is_directory(self):
        return os.path.isdir(self)

    is_dir = is_directory

    @property
    def is_file(self):
        return os.path.isfile(self)

    @property
    def is_link(self):
        '''
        True for symlinks, and on Windows also for directory junctions such as
        "C:\\Users\\All Users" which point somewhere else entirely.
        '''
        if os.path.islink(self):
            return True
        isjunction = getattr(os.path, 'isjunction', None)
        return bool(isjunction and isjunction(self))

    def join(self, subpath):
        '''
        Use os.path.join to join this path with any other path string.
        '''
        if not isinstance(subpath, str):
            raise TypeError(f'subpath must be a {str}, not {type(subpath)}.')
        return Path(os.path.join(self.absolute_path, normalize_sep(subpath)))

    def listdir_directories(self):
        children = (e.name for e in os.scandir(self) if e.is_dir())
        return sorted(self.with_child(c) for c in children)

    def makedirs(self, mode=0o777, exist_ok=False):
        return os.makedirs(self, mode=mode, exist_ok=exist_ok)

    @property
    def normcase(self):
        return os.path.normcase(self.absolute_path)

    def open(self, *args, **kwargs):
        return open(self, *args, **kwargs)

    @property
    def parent(self):
        return Path(os.path.dirname(self.absolute_path))

    def with_child(self, basename):
        if not isinstance(basename, str):
            raise TypeError(f'basename must be {str}, not {type(basename)}.')
        if any(sep in basename for sep in SEPS):
            raise ValueError('A basename cannot contain path separators.')
        return Path(os.path.join(self.absolute_path, basename))

def fix_glob(pattern):
    '''
    On Windows, square brackets do not have a special meaning in glob strings,
    and shortcut names like "Outlook [old].lnk" are common enough. Escape them
    so the pattern behaves the way a Windows user expects.
    '''
    if os.name == 'nt':
        pattern = re.sub(r'(\[|\])', r'[\1]', pattern)
    return pattern

def fnmatch_name(name, pattern):
    return fnmatch.fnmatch(name, fix_glob(pattern))

def fnmatch_filter(names, pattern):
    return fnmatch.filter(names, fix_glob(pattern))

def normalize_sep(path) -> str:
    '''
    Normalize path separators as appropriate for the operating system.

    On Windows, forward slash / is replaced with backslash \\.
    On unix, backslashes are valid filename characters so they are not
    touched.
    '''
    if os.name == 'nt':
        path = path.replace('/', '\\')
    return path
