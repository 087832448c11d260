"""Shared pytest fixtures for backup-mirror tests."""

import logging
import os
from pathlib import Path
from typing import Dict

import pytest


def make_tree(root: Path, files: Dict[str, bytes]) -> Path:
    """Create files (and their parent directories) under root."""
    root.mkdir(parents=True, exist_ok=True)
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    return root


def read_tree(root: Path) -> Dict[str, bytes]:
    """Return every file under root keyed by its POSIX relative path."""
    contents = {}
    for dirpath, _, filenames in os.walk(root):
        for name in filenames:
            path = Path(dirpath) / name
            contents[path.relative_to(root).as_posix()] = path.read_bytes()
    return contents


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo handler changes the CLI makes to the root logger."""
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield
    for handler in root_logger.handlers[:]:
        if handler not in handlers:
            root_logger.removeHandler(handler)
    for handler in handlers:
        if handler not in root_logger.handlers:
            root_logger.addHandler(handler)
    root_logger.setLevel(level)


@pytest.fixture
def source_dir(tmp_path):
    return tmp_path / "source"


@pytest.fixture
def dest_dir(tmp_path):
    return tmp_path / "dest"


@pytest.fixture
def log_dir(tmp_path):
    return tmp_path / "logs"
