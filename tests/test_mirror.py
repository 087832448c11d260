"""Tests for the recursive mirror engine."""

import logging
import os
import shutil

import pytest

from backup_mirror.core.mirror import MirrorEngine, PARTIAL_SUFFIX
from backup_mirror.core.models import OutcomeStatus

from conftest import make_tree, read_tree

MIRROR_LOGGER = "backup_mirror.core.mirror"


def _messages(caplog):
    return [r.getMessage() for r in caplog.records if r.name == MIRROR_LOGGER]


# ---------------------------------------------------------------------------
# Basic mirroring
# ---------------------------------------------------------------------------


def test_example_run_copies_only_backup_files(source_dir, dest_dir, caplog):
    make_tree(source_dir, {
        "a.bak": b"alpha",
        "sub/b.bak": b"bravo",
        "notes.txt": b"ignore me",
    })

    with caplog.at_level(logging.INFO, logger=MIRROR_LOGGER):
        result = MirrorEngine().mirror(source_dir, dest_dir)

    assert read_tree(dest_dir) == {"a.bak": b"alpha", "sub/b.bak": b"bravo"}
    messages = _messages(caplog)
    assert len([m for m in messages if m.startswith("Copied file")]) == 2
    assert not [m for m in messages if "Skipping copy" in m]
    assert len(result.copied) == 2
    assert result.skipped == []
    assert result.errors == []
    assert result.bytes_copied == len(b"alpha") + len(b"bravo")
    assert result.succeeded


def test_second_run_copies_nothing(source_dir, dest_dir, caplog):
    make_tree(source_dir, {
        "a.bak": b"alpha",
        "x/y/z.bak": b"deep",
        "x/c.bak": b"charlie",
    })
    engine = MirrorEngine()

    engine.mirror(source_dir, dest_dir)
    after_first = read_tree(dest_dir)

    caplog.clear()
    with caplog.at_level(logging.INFO, logger=MIRROR_LOGGER):
        second = engine.mirror(source_dir, dest_dir)

    assert read_tree(dest_dir) == after_first
    assert second.copied == []
    assert len(second.skipped) == 3
    messages = _messages(caplog)
    assert not [m for m in messages if m.startswith("Copied file")]
    assert len([m for m in messages if "Skipping copy" in m]) == 3


def test_existing_destination_file_is_never_overwritten(source_dir, dest_dir):
    make_tree(source_dir, {"a.bak": b"new contents", "sub/b.bak": b"new b"})
    make_tree(dest_dir, {"a.bak": b"old", "sub/b.bak": b"old b"})

    result = MirrorEngine().mirror(source_dir, dest_dir)

    assert (dest_dir / "a.bak").read_bytes() == b"old"
    assert (dest_dir / "sub" / "b.bak").read_bytes() == b"old b"
    assert {o.status for o in result.outcomes} == {OutcomeStatus.SKIPPED}


def test_nested_structure_is_reproduced(source_dir, dest_dir):
    files = {
        "root.bak": b"0",
        "l1/one.bak": b"1",
        "l1/l2/two.bak": b"2",
        "l1/l2/l3/three.bak": b"3",
        "l1/l2/l3/l4/four.bak": b"4",
        "other/five.bak": b"5",
        "l1/l2/readme.md": b"not a backup",
        "l1/archive.bak.gz": b"not a backup either",
    }
    make_tree(source_dir, files)

    MirrorEngine().mirror(source_dir, dest_dir)

    expected = {k: v for k, v in files.items() if k.endswith(".bak")}
    assert read_tree(dest_dir) == expected


def test_empty_subdirectories_are_recreated(source_dir, dest_dir):
    make_tree(source_dir, {"a.bak": b"a"})
    (source_dir / "empty" / "nested").mkdir(parents=True)

    MirrorEngine().mirror(source_dir, dest_dir)

    assert (dest_dir / "empty" / "nested").is_dir()


def test_files_are_handled_before_subdirectories(source_dir, dest_dir):
    make_tree(source_dir, {"sub/inner.bak": b"i", "top.bak": b"t"})

    result = MirrorEngine().mirror(source_dir, dest_dir)

    names = [os.path.basename(o.source) for o in result.outcomes]
    assert names == ["top.bak", "inner.bak"]


def test_custom_pattern(source_dir, dest_dir):
    make_tree(source_dir, {"a.bak": b"a", "b.trn": b"b"})

    MirrorEngine(pattern="*.trn").mirror(source_dir, dest_dir)

    assert read_tree(dest_dir) == {"b.trn": b"b"}


def test_directory_symlinks_are_not_followed(source_dir, dest_dir):
    make_tree(source_dir, {"a.bak": b"a"})
    try:
        os.symlink(source_dir, source_dir / "loop", target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported")

    result = MirrorEngine().mirror(source_dir, dest_dir)

    assert read_tree(dest_dir) == {"a.bak": b"a"}
    assert not (dest_dir / "loop").exists()
    assert result.errors == []


# ---------------------------------------------------------------------------
# Missing source
# ---------------------------------------------------------------------------


def test_missing_source_is_a_logged_no_op(tmp_path, dest_dir, caplog):
    missing = tmp_path / "does-not-exist"

    with caplog.at_level(logging.DEBUG, logger=MIRROR_LOGGER):
        result = MirrorEngine().mirror(missing, dest_dir)

    assert not dest_dir.exists()
    assert os.listdir(tmp_path) == []
    messages = _messages(caplog)
    assert len(messages) == 1
    assert str(missing) in messages[0]
    assert result.source_missing
    assert not result.succeeded
    assert [o.status for o in result.outcomes] == [OutcomeStatus.MISSING_SOURCE]


# ---------------------------------------------------------------------------
# Error tolerance
# ---------------------------------------------------------------------------


def test_copy_failure_does_not_stop_siblings(source_dir, dest_dir, caplog):
    make_tree(source_dir, {
        "good1.bak": b"1",
        "bad.bak": b"x",
        "good2.bak": b"2",
        "sub/good3.bak": b"3",
    })

    def flaky_copy(src, dst):
        if os.path.basename(src) == "bad.bak":
            raise PermissionError(13, "Permission denied", src)
        return shutil.copyfile(src, dst)

    with caplog.at_level(logging.INFO, logger=MIRROR_LOGGER):
        result = MirrorEngine(copy_file=flaky_copy).mirror(source_dir, dest_dir)

    assert read_tree(dest_dir) == {
        "good1.bak": b"1",
        "good2.bak": b"2",
        "sub/good3.bak": b"3",
    }
    assert len(result.errors) == 1
    assert result.errors[0].source.endswith("bad.bak")
    assert "Permission denied" in result.errors[0].error_message
    assert any("bad.bak" in m for m in _messages(caplog) if m.startswith("Failed to copy"))


def test_interrupted_copy_leaves_no_file_behind(source_dir, dest_dir):
    make_tree(source_dir, {"big.bak": b"0123456789"})

    def interrupted_copy(src, dst):
        with open(dst, "wb") as f:
            f.write(b"01234")
        raise OSError(28, "No space left on device")

    result = MirrorEngine(copy_file=interrupted_copy).mirror(source_dir, dest_dir)

    assert read_tree(dest_dir) == {}
    assert not (dest_dir / ("big.bak" + PARTIAL_SUFFIX)).exists()
    assert len(result.errors) == 1

    # The next pass copies the file since nothing claimed its name
    retry = MirrorEngine().mirror(source_dir, dest_dir)
    assert len(retry.copied) == 1
    assert (dest_dir / "big.bak").read_bytes() == b"0123456789"


def test_unreadable_directory_is_reported_and_skipped(source_dir, dest_dir, monkeypatch):
    make_tree(source_dir, {"a.bak": b"a", "locked/b.bak": b"b", "open/c.bak": b"c"})
    locked = str(source_dir / "locked")
    real_scandir = os.scandir

    def guarded_scandir(path="."):
        if os.fspath(path) == locked:
            raise PermissionError(13, "Permission denied", locked)
        return real_scandir(path)

    monkeypatch.setattr("backup_mirror.core.mirror.os.scandir", guarded_scandir)

    result = MirrorEngine().mirror(source_dir, dest_dir)

    assert read_tree(dest_dir) == {"a.bak": b"a", "open/c.bak": b"c"}
    assert [o.source for o in result.errors] == [locked]


def test_uncreatable_destination_directory_is_not_descended(source_dir, dest_dir):
    make_tree(source_dir, {"blocked/b.bak": b"b", "fine/c.bak": b"c"})
    # A plain file where the mirrored directory should go
    make_tree(dest_dir, {"blocked": b"in the way"})

    result = MirrorEngine().mirror(source_dir, dest_dir)

    assert (dest_dir / "blocked").read_bytes() == b"in the way"
    assert (dest_dir / "fine" / "c.bak").read_bytes() == b"c"
    assert len(result.errors) == 1
    assert result.errors[0].destination == str(dest_dir / "blocked")
