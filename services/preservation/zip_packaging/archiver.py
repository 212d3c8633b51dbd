"""Zip utility invocation behind a small protocol.

Parts are written uncompressed (``-0``) without extra file attributes
(``-X``) and split at the configured size (``-s``). The command runs from the
directory above the object directory so archive paths start at
``<druid>/vNNNN/``.
"""

from __future__ import annotations

import re
import shlex
import subprocess
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from services.preservation.zip_packaging.errors import ZipmakerFailure

_VERSION_PATTERN = re.compile(r"This is (Zip [0-9][^ ]*)")


class ZipInfo(BaseModel):
    """How a set of parts was produced; travels with every part's metadata."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    zip_cmd: str
    zip_version: str


class ZipArchiver(Protocol):
    """Produce a split, stored zip of one directory."""

    def command_line(self, *, target: Path, source: str, split_size: str) -> list[str]:
        """Return the argv used to create ``target`` from ``source``."""

    def version(self) -> str:
        """Return the zip utility version string."""

    def create(self, *, work_dir: Path, target: Path, source: str, split_size: str) -> ZipInfo:
        """Write the parts for ``source`` (relative to ``work_dir``) at ``target``."""


class SubprocessZipArchiver:
    """Run the system ``zip`` utility."""

    def __init__(self, *, command: str = "zip", timeout_seconds: float | None = None) -> None:
        self._command = command
        self._timeout_seconds = timeout_seconds
        self._version: str | None = None

    def command_line(self, *, target: Path, source: str, split_size: str) -> list[str]:
        """Return ``zip -r0X -s <split> <target> <source>``."""
        return [self._command, "-r0X", "-s", split_size, str(target), source]

    def version(self) -> str:
        """Return the first ``Zip x.y`` banner from ``zip -v``, cached."""
        if self._version is None:
            completed = self._run([self._command, "-v"], cwd=None)
            match = _VERSION_PATTERN.search(completed.stdout)
            if match is None:
                raise ZipmakerFailure(
                    f"unable to parse zip version from: {completed.stdout[:200]!r}"
                )
            self._version = match.group(1)
        return self._version

    def create(self, *, work_dir: Path, target: Path, source: str, split_size: str) -> ZipInfo:
        """Run the zip utility and return how it was invoked."""
        argv = self.command_line(target=target, source=source, split_size=split_size)
        self._run(argv, cwd=work_dir)
        return ZipInfo(zip_cmd=shlex.join(argv), zip_version=self.version())

    def _run(self, argv: list[str], *, cwd: Path | None) -> subprocess.CompletedProcess[str]:
        """Run one command, raising ``ZipmakerFailure`` on any failure."""
        try:
            completed = subprocess.run(
                argv,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self._timeout_seconds,
                check=False,
            )
        except FileNotFoundError as exc:
            raise ZipmakerFailure(f"zip command not found: {argv[0]}") from exc
        except subprocess.TimeoutExpired as exc:
            raise ZipmakerFailure(
                f"zipmaker timed out after {self._timeout_seconds}s"
            ) from exc
        if completed.returncode != 0:
            raise ZipmakerFailure(
                f"zipmaker failure (exit {completed.returncode}): "
                f"{completed.stdout}{completed.stderr}".strip()
            )
        return completed
