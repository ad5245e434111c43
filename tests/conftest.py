import pytest

from lnkretarget import shortcuts


class FakeBackend:
    '''Stores a shortcut's target as the file's text, so copying a file copies its target.'''

    def __init__(self):
        self.writes = []

    def read_target(self, path):
        try:
            text = open(path, 'r', encoding='utf-8').read()
        except (OSError, UnicodeDecodeError) as exc:
            raise shortcuts.ShortcutReadError(path, exc) from exc
        if text.startswith('CORRUPT'):
            raise shortcuts.ShortcutReadError(path, 'corrupt shortcut')
        return text

    def write_target(self, path, target):
        self.writes.append((str(path), target))
        with open(path, 'w', encoding='utf-8') as handle:
            handle.write(target)


class FailingBackend(FakeBackend):
    def write_target(self, path, target):
        raise shortcuts.ShortcutWriteError(path, 'access denied')


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def make_lnk():
    def make(path, target):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(target, encoding='utf-8')
        return path

    return make


@pytest.fixture
def read_lnk():
    def read(path):
        return path.read_text(encoding='utf-8')

    return read
