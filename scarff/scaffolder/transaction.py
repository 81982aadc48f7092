"""Atomic scaffold transaction.

Commits a :class:`~scarff.models.RenderedProject` to disk with stage-then-move
semantics: every file is written into a uniquely named sibling of the
destination, and only when all of them are staged does a single directory
rename make the tree visible.  Any failure (including an interrupt) discards
the staging directory and any parent directories the call created, leaving the
destination exactly as it was.

With :attr:`~scarff.models.ScaffoldMode.FORCE`, an existing destination is
renamed to a sibling backup, the staged tree renamed into place, and the
backup deleted.  If the second rename fails the backup is moved back.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import uuid
from pathlib import Path
from typing import Callable

from scarff.errors import CommitFailed, DestinationExists, StagingFailed
from scarff.models import RenderedProject, ScaffoldMode, ScaffoldOutcome

logger = logging.getLogger(__name__)

WriteFile = Callable[[Path, bytes, bool], None]

_EXEC_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _write_file(path: Path, content: bytes, executable: bool = False) -> None:
    """Create parent dirs and write *content*, optionally marking it executable."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    if executable:
        mode = path.stat().st_mode
        # only grant execute where read is already granted
        path.chmod(mode | ((mode & 0o444) >> 2 & _EXEC_BITS))


def is_occupied(path: Path) -> bool:
    """True when *path* is a file, a symlink, or a non-empty directory."""
    if path.is_symlink() or (path.exists() and not path.is_dir()):
        return True
    if path.is_dir():
        return any(path.iterdir())
    return False


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def _discard(path: Path) -> None:
    """Best-effort removal used on rollback paths."""
    if not (path.exists() or path.is_symlink()):
        return
    try:
        _remove(path)
    except OSError as exc:
        logger.warning("Could not remove %s: %s", path, exc)


def _sibling(destination: Path, kind: str) -> Path:
    return destination.parent / f".{destination.name}.scarff-{kind}-{uuid.uuid4().hex[:8]}"


# ---------------------------------------------------------------------------
# ScaffoldTransaction
# ---------------------------------------------------------------------------


class ScaffoldTransaction:
    """Writes a rendered project to disk all-or-nothing.

    Args:
        write_file: Callable used to write each staged file.  Swappable so
            tests can inject failures on a chosen file.
    """

    def __init__(self, write_file: WriteFile = _write_file) -> None:
        self._write_file = write_file

    def commit(
        self,
        project: RenderedProject,
        destination: str | Path,
        mode: ScaffoldMode = ScaffoldMode.NORMAL,
    ) -> ScaffoldOutcome:
        """Pre-flight, stage and commit *project* under *destination*.

        Raises:
            DestinationExists: destination is occupied and the mode does not
                allow replacing it.
            StagingFailed: a file could not be staged (rolled back).
            CommitFailed: the final rename failed (rolled back).
        """
        destination = Path(destination).expanduser().absolute()
        occupied = is_occupied(destination)
        exists = destination.exists() or destination.is_symlink()

        if occupied and not mode.allows_replace:
            raise DestinationExists(destination)

        if mode.simulated:
            logger.info("Dry run: %d files would be written to %s", len(project.files), destination)
            return ScaffoldOutcome(
                destination=destination,
                files=project.paths,
                simulated=True,
                replaced_existing=occupied,
            )

        created_parents = self._make_parents(destination.parent)
        staging = _sibling(destination, "staging")
        try:
            try:
                staging.mkdir()
            except OSError as exc:
                raise StagingFailed(str(staging), exc) from exc
            self._stage(project, staging)
            self._swap_in(staging, destination, exists)
        except BaseException:
            _discard(staging)
            for directory in reversed(created_parents):
                try:
                    directory.rmdir()
                except OSError as exc:
                    logger.warning("Could not remove %s: %s", directory, exc)
            raise

        logger.info("Wrote %d files to %s", len(project.files), destination)
        return ScaffoldOutcome(
            destination=destination,
            files=project.paths,
            simulated=False,
            replaced_existing=occupied,
        )

    # -- Steps -------------------------------------------------------------

    @staticmethod
    def _make_parents(parent: Path) -> list[Path]:
        """Create missing ancestors of the destination, outermost first."""
        missing: list[Path] = []
        current = parent
        while not current.exists():
            missing.append(current)
            current = current.parent
        missing.reverse()

        created: list[Path] = []
        for directory in missing:
            try:
                directory.mkdir()
            except OSError as exc:
                for done in reversed(created):
                    _discard(done)
                raise StagingFailed(str(directory), exc) from exc
            created.append(directory)
        return created

    def _stage(self, project: RenderedProject, staging: Path) -> None:
        logger.debug("Staging %d files in %s", len(project.files), staging)
        for rendered in project.files:
            try:
                self._write_file(staging / rendered.path, rendered.content, rendered.executable)
            except OSError as exc:
                raise StagingFailed(rendered.path, exc) from exc

    @staticmethod
    def _swap_in(staging: Path, destination: Path, exists: bool) -> None:
        """Make the staged tree visible with a single rename."""
        if not exists:
            try:
                os.replace(staging, destination)
            except OSError as exc:
                raise CommitFailed(destination, exc) from exc
            return

        backup = _sibling(destination, "backup")
        try:
            os.replace(destination, backup)
        except OSError as exc:
            raise CommitFailed(destination, exc) from exc

        try:
            os.replace(staging, destination)
        except BaseException as exc:
            try:
                os.replace(backup, destination)
            except OSError as restore_exc:
                logger.error(
                    "Could not restore %s from backup %s: %s", destination, backup, restore_exc
                )
            if isinstance(exc, OSError):
                raise CommitFailed(destination, exc) from exc
            raise

        logger.debug("Replaced existing %s", destination)
        _discard(backup)
