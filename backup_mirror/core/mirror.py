"""Recursive mirroring of backup files from a source tree into a destination tree."""

import fnmatch
import logging
import os
import shutil
from datetime import datetime
from typing import Callable, List

from .models import DirectoryNode, MirrorOutcome, MirrorResult, OutcomeStatus

BACKUP_FILE_PATTERN = "*.bak"
PARTIAL_SUFFIX = ".partial"


class MirrorEngine:
    """Copies matching files into a destination tree, never overwriting.

    A file that already exists at the destination is considered authoritative
    and is left untouched, so running the engine repeatedly over an unchanged
    source copies every file at most once.
    """

    def __init__(self, pattern: str = BACKUP_FILE_PATTERN,
                 copy_file: Callable[[str, str], object] = shutil.copyfile):
        """Initialize mirror engine.

        Args:
            pattern: Glob pattern a file name must match to be mirrored.
            copy_file: Whole-file byte copy primitive, called as
                       ``copy_file(source, destination)``.
        """
        self.pattern = pattern
        self.copy_file = copy_file
        self.logger = logging.getLogger(__name__)

    def mirror(self, source_root: str, dest_root: str) -> MirrorResult:
        """Mirror every matching file under source_root into dest_root.

        Args:
            source_root: Root of the tree to copy from.
            dest_root: Root of the tree to copy into.

        Returns:
            MirrorResult with one outcome per file copied, skipped or failed.
        """
        source_root = str(source_root)
        dest_root = str(dest_root)
        result = MirrorResult(source_root=source_root, dest_root=dest_root,
                              started_at=datetime.now())

        if not os.path.isdir(source_root):
            self.logger.error(f"The source folder '{source_root}' does not exist.")
            result.outcomes.append(MirrorOutcome(
                status=OutcomeStatus.MISSING_SOURCE,
                source=source_root,
                destination=dest_root,
                error_message="Source folder does not exist"
            ))
            result.finished_at = datetime.now()
            return result

        self._walk(DirectoryNode(source_root, dest_root), result.outcomes)
        result.finished_at = datetime.now()
        return result

    def _walk(self, root: DirectoryNode, outcomes: List[MirrorOutcome]) -> None:
        """Visit root and all of its subdirectories, files before subdirectories."""
        stack = [root]

        while stack:
            node = stack.pop()

            if node is not root:
                try:
                    os.makedirs(node.dest_dir, exist_ok=True)
                except OSError as e:
                    self.logger.error(f"Could not create directory '{node.dest_dir}': {e}")
                    outcomes.append(MirrorOutcome(
                        status=OutcomeStatus.ERROR,
                        source=node.source_dir,
                        destination=node.dest_dir,
                        error_message=str(e)
                    ))
                    continue

            try:
                with os.scandir(node.source_dir) as it:
                    entries = list(it)
            except OSError as e:
                self.logger.error(f"Could not read directory '{node.source_dir}': {e}")
                outcomes.append(MirrorOutcome(
                    status=OutcomeStatus.ERROR,
                    source=node.source_dir,
                    destination=node.dest_dir,
                    error_message=str(e)
                ))
                continue

            subdirectories = []
            for entry in entries:
                try:
                    if entry.is_dir(follow_symlinks=False):
                        subdirectories.append(DirectoryNode(
                            entry.path, os.path.join(node.dest_dir, entry.name)
                        ))
                    elif entry.is_file() and fnmatch.fnmatch(entry.name, self.pattern):
                        outcomes.append(self._mirror_file(entry.path, entry.name, node.dest_dir))
                except OSError as e:
                    self.logger.error(f"Could not inspect '{entry.path}': {e}")
                    outcomes.append(MirrorOutcome(
                        status=OutcomeStatus.ERROR,
                        source=entry.path,
                        error_message=str(e)
                    ))

            # Reversed so siblings are visited in listing order
            stack.extend(reversed(subdirectories))

    def _mirror_file(self, source: str, name: str, dest_dir: str) -> MirrorOutcome:
        """Copy a single file unless it already exists at the destination."""
        destination = os.path.join(dest_dir, name)

        if os.path.exists(destination):
            self.logger.info(f"File '{destination}' already exists. Skipping copy.")
            return MirrorOutcome(status=OutcomeStatus.SKIPPED, source=source,
                                 destination=destination)

        try:
            os.makedirs(dest_dir, exist_ok=True)
            size = self._copy_verbatim(source, destination)
        except OSError as e:
            self.logger.error(f"Failed to copy '{source}' to '{destination}': {e}")
            return MirrorOutcome(status=OutcomeStatus.ERROR, source=source,
                                 destination=destination, error_message=str(e))

        self.logger.info(f"Copied file '{source}' to '{destination}'.")
        return MirrorOutcome(status=OutcomeStatus.COPIED, source=source,
                             destination=destination, size=size)

    def _copy_verbatim(self, source: str, destination: str) -> int:
        """Copy source to destination through a temporary sibling file.

        The final name only ever holds a complete copy.
        """
        partial = destination + PARTIAL_SUFFIX
        try:
            self.copy_file(source, partial)
            os.replace(partial, destination)
        except OSError:
            self._discard_partial(partial)
            raise
        return os.path.getsize(destination)

    def _discard_partial(self, partial: str) -> None:
        if not os.path.exists(partial):
            return
        try:
            os.remove(partial)
        except OSError as e:
            self.logger.warning(f"Could not remove incomplete copy '{partial}': {e}")
