import pytest

from lnkretarget import targets

OLD = 'C:\\Program Files\\Office15\\OUTLOOK.EXE'
NEW = 'C:\\Program Files\\Office16\\OUTLOOK.EXE'


def test_missing_path_is_literal(backend) -> None:
    target = targets.resolve_target(OLD, backend=backend)

    assert target.is_literal
    assert not target.is_directory
    assert target.references == []


def test_literal_match_ignores_case_quotes_and_slashes(backend) -> None:
    target = targets.resolve_target(OLD, backend=backend)

    assert target.find_match('c:\\program files\\office15\\outlook.exe') is not None
    assert target.find_match(f'"{OLD}"') is not None
    assert target.find_match('C:/Program Files/Office15/OUTLOOK.EXE') is not None
    assert target.find_match('C:\\Program Files\\Office16\\OUTLOOK.EXE') is None


def test_empty_target_never_matches(backend) -> None:
    target = targets.resolve_target(OLD, backend=backend)

    assert target.find_match('') is None
    assert target.find_match(None) is None


def test_empty_old_target_is_rejected(backend) -> None:
    with pytest.raises(ValueError):
        targets.resolve_target('   ', backend=backend)


def test_directory_reads_reference_shortcuts(tmp_path, backend, make_lnk) -> None:
    refs = tmp_path / 'old'
    make_lnk(refs / 'Word.lnk', 'C:\\Office15\\WINWORD.EXE')
    make_lnk(refs / 'Outlook.lnk', OLD)
    (refs / 'notes.txt').write_text(OLD, encoding='utf-8')

    target = targets.resolve_target(str(refs), backend=backend)

    assert target.is_directory
    assert [r.path.basename for r in target.references] == ['Outlook.lnk', 'Word.lnk']
    match = target.find_match(OLD)
    assert match.reference.path.basename == 'Outlook.lnk'
    assert target.find_match('C:\\Elsewhere\\app.exe') is None


def test_unreadable_reference_is_skipped(tmp_path, backend, make_lnk) -> None:
    refs = tmp_path / 'old'
    make_lnk(refs / 'Broken.lnk', 'CORRUPT')
    make_lnk(refs / 'Outlook.lnk', OLD)

    target = targets.resolve_target(str(refs), backend=backend)

    assert [r.path.basename for r in target.references] == ['Outlook.lnk']


def test_literal_replacement_is_the_value(tmp_path, backend) -> None:
    old = targets.resolve_target(OLD, backend=backend)
    new = targets.resolve_target(NEW, backend=backend)
    match = old.find_match(OLD)

    assert new.replacement_for(tmp_path / 'Outlook.lnk', match) == NEW


def test_directory_replacement_uses_old_reference_name(tmp_path, backend, make_lnk) -> None:
    make_lnk(tmp_path / 'old' / 'Outlook.lnk', OLD)
    make_lnk(tmp_path / 'new' / 'outlook.LNK', NEW)
    old = targets.resolve_target(str(tmp_path / 'old'), backend=backend, pattern='*')
    new = targets.resolve_target(str(tmp_path / 'new'), backend=backend, pattern='*')

    replacement = new.replacement_for(tmp_path / 'desk' / 'My Mail.lnk', old.find_match(OLD))

    assert replacement.basename == 'outlook.LNK'


def test_directory_replacement_uses_own_name_for_literal_old(tmp_path, backend, make_lnk) -> None:
    make_lnk(tmp_path / 'new' / 'Mail.lnk', NEW)
    old = targets.resolve_target(OLD, backend=backend)
    new = targets.resolve_target(str(tmp_path / 'new'), backend=backend)

    replacement = new.replacement_for(tmp_path / 'desk' / 'Mail.lnk', old.find_match(OLD))

    assert replacement.basename == 'Mail.lnk'
    assert new.replacement_for(tmp_path / 'desk' / 'Other.lnk', old.find_match(OLD)) is None
