"""Template source resolution.

A template run needs the template's static assets on disk.  When the
template is referenced by a local path the assets sit next to it; when it is
referenced by an ``http(s)://`` URL the repository is cloned into a temporary
directory which is removed again when the process exits.
"""

from __future__ import annotations

import atexit
import re
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from prepper.config import DEFAULT_REPOSITORY_URL
from prepper.scaffolder.templates import BUNDLED_FILES_DIR
from prepper.utils import CommandError, format_command, run_command, say_status

TEMP_DIR_PREFIX = "rails-prepper-"

_REMOTE_RE = re.compile(r"\Ahttps?://")
_BRANCH_RE = re.compile(r"rails-prepper/(.+)/template\.rb")


@dataclass
class TemplateSource:
    """Where template assets are looked up, in priority order."""

    source_paths: list[Path]
    temp_dir: Path | None = None
    branch: str | None = None
    _cleaned: bool = field(default=False, repr=False)

    @property
    def is_remote(self) -> bool:
        return self.temp_dir is not None

    def cleanup(self) -> None:
        """Remove the temporary checkout, if any.  Safe to call repeatedly."""
        if self.temp_dir is None or self._cleaned:
            return
        shutil.rmtree(self.temp_dir, ignore_errors=True)
        self._cleaned = True


def is_remote_location(location: str) -> bool:
    """Return ``True`` if *location* is an http(s) URL."""
    return bool(_REMOTE_RE.match(location))


def branch_from_location(location: str) -> str | None:
    """Extract the branch from ``.../rails-prepper/<branch>/template.rb``.

    Examples::

        branch_from_location(
            "https://raw.githubusercontent.com/u/rails-prepper/main/template.rb"
        ) -> "main"
    """
    match = _BRANCH_RE.search(location)
    return match.group(1) if match else None


def resolve_source(
    location: str = "",
    repository_url: str = DEFAULT_REPOSITORY_URL,
    timeout: int = 600,
) -> TemplateSource:
    """Turn a template location into a ``TemplateSource``.

    The bundled asset directory is always the last source path, so assets a
    checkout does not provide still resolve.

    Raises:
        CommandError: If cloning or checking out the template repository fails.
    """
    if location and is_remote_location(location):
        return _clone_remote(location, repository_url, timeout)

    paths: list[Path] = []
    if location:
        local = Path(location).expanduser().resolve()
        paths.append(local if local.is_dir() else local.parent)
    paths.append(BUNDLED_FILES_DIR)
    return TemplateSource(source_paths=_dedupe(paths))


def _clone_remote(location: str, repository_url: str, timeout: int) -> TemplateSource:
    temp_dir = Path(tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX))
    source = TemplateSource(
        source_paths=[temp_dir, BUNDLED_FILES_DIR],
        temp_dir=temp_dir,
        branch=branch_from_location(location),
    )
    # Registered before cloning so a failed clone still gets cleaned up.
    atexit.register(source.cleanup)

    _git(["clone", "--quiet", repository_url, str(temp_dir)], cwd=None, timeout=timeout)
    if source.branch:
        _git(["checkout", source.branch], cwd=temp_dir, timeout=timeout)
    return source


def _git(args: list[str], cwd: Path | None, timeout: int) -> None:
    cmd = ["git", *args]
    say_status("git", " ".join(args))
    returncode, _stdout, stderr = run_command(cmd, cwd=cwd, timeout=timeout)
    if returncode != 0:
        raise CommandError(
            f"Command failed (exit {returncode}): {format_command(cmd)}\n{stderr}",
            command=format_command(cmd),
            returncode=returncode,
            stderr=stderr,
        )


def _dedupe(paths: list[Path]) -> list[Path]:
    seen: set[Path] = set()
    unique: list[Path] = []
    for path in paths:
        if path not in seen:
            seen.add(path)
            unique.append(path)
    return unique
