'''
Old and new targets can be given two ways.

Literal:
    A path string such as "C:\\Program Files\\Office15\\OUTLOOK.EXE". It is
    compared against (old) or written into (new) each shortcut's target.

Reference directory:
    A directory that exists and contains shortcuts. For the old target, a
    shortcut matches when it points where any of the reference shortcuts
    point. For the new target, the shortcut is replaced by a copy of the
    reference shortcut with the same filename as the matched old reference,
    so that "Outlook.lnk" in the old directory pairs up with "Outlook.lnk"
    in the new one.

If the value does not exist on disk it is simply a literal, no error.
'''
import os

from lnkretarget import pathclass
from lnkretarget import shortcuts
from lnkretarget import vlogging

log = vlogging.getLogger(__name__)

class Reference:
    def __init__(self, path, target):
        self.path = path
        self.target = target

    def __repr__(self):
        return f'Reference({self.path.basename!r} -> {self.target!r})'

    @property
    def key(self):
        return os.path.normcase(self.path.basename).casefold()

class Match:
    '''
    The result of TargetSpec.find_match. `reference` is the old reference
    shortcut that matched, or None if the old target was a literal.
    '''
    def __init__(self, target, reference=None):
        self.target = target
        self.reference = reference

    def __repr__(self):
        return f'Match({self.target!r}, reference={self.reference!r})'

class TargetSpec:
    def __init__(self, value, *, directory=None, references=None):
        self.value = value
        self.directory = directory
        self.references = references or []
        self._by_key = {reference.key: reference for reference in self.references}

    def __repr__(self):
        if self.is_directory:
            return f'TargetSpec(directory={self.directory.absolute_path!r}, references={len(self.references)})'
        return f'TargetSpec({self.value!r})'

    def __str__(self):
        if self.is_directory:
            return f'{self.directory.absolute_path} ({len(self.references)} reference shortcuts)'
        return self.value

    @property
    def is_directory(self):
        return self.directory is not None

    @property
    def is_literal(self):
        return self.directory is None

    def find_match(self, target):
        '''
        Return a Match if the given shortcut target is one we are looking for,
        otherwise None. An empty target never matches.
        '''
        if self.is_literal:
            if shortcuts.same_target(target, self.value):
                return Match(target)
            return None

        for reference in self.references:
            if shortcuts.same_target(target, reference.target):
                return Match(target, reference=reference)
        return None

    def get_reference(self, name):
        key = os.path.normcase(name).casefold()
        return self._by_key.get(key)

    def replacement_for(self, shortcut_path, match):
        '''
        Return what the matched shortcut should become: the new target string
        if this TargetSpec is a literal, or the Path of the reference shortcut to
        copy over it. The reference is chosen by the filename of the old
        reference that matched, or the shortcut's own filename when the old
        target was a literal.

        Returns None if this is a directory with no suitable reference.
        '''
        if self.is_literal:
            return self.value

        if match is not None and match.reference is not None:
            name = match.reference.path.basename
        else:
            name = pathclass.Path(shortcut_path).basename

        reference = self.get_reference(name)
        if reference is None:
            return None
        return reference.path

def read_references(directory, *, backend, pattern='*.lnk'):
    '''
    Read every shortcut directly inside the directory, in name order.
    Shortcuts which cannot be read are skipped with a warning.
    '''
    references = []
    for path in directory.glob_files(pattern):
        try:
            target = backend.read_target(path)
        except shortcuts.ShortcutReadError as exc:
            log.warning('Skipping reference shortcut: %s', exc)
            continue
        log.debug('Reference %s -> %s', path.basename, target)
        references.append(Reference(path, target))
    return references

def resolve_target(value, *, backend, pattern='*.lnk', role='target'):
    '''
    Decide whether the user's value is a reference directory or a literal
    path string, by checking whether it exists as a directory.
    '''
    if not isinstance(value, str):
        raise TypeError(f'value should be {str}, not {type(value)}.')

    if value.strip() == '':
        raise ValueError(f'The {role} cannot be empty.')

    path = pathclass.Path(value)
    if not path.is_dir:
        log.debug('%s %r is a literal.', role.capitalize(), value)
        return TargetSpec(value)

    references = read_references(path, backend=backend, pattern=pattern)
    if not references:
        log.warning('%s directory %s contains no readable shortcuts.', role.capitalize(), path.absolute_path)
    log.debug('%s %r is a directory of %d references.', role.capitalize(), value, len(references))
    return TargetSpec(value, directory=path, references=references)
