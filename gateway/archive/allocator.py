"""Append-only allocation of run artifacts.

Each submission lands in the archive directory as
``<identifier>-<sequence:04x>-<MMDDhhmm>.<ext>``. The identifier is derived
from the client seed, the sequence is one past the highest sequence already
on disk for that identifier. Scan and create happen under a per-identifier
lock, and the create itself is exclusive so that a writer in another process
that picked the same name surfaces as a ``StorageError`` instead of an
overwrite.
"""

import logging
import os
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Callable, Iterator

from gateway.archive.naming import (
    MAX_SEQUENCE,
    derive_identifier,
    format_artifact_name,
    max_sequence,
    resolve_language,
)
from gateway.archive.provenance import Provenance
from gateway.errors import StorageError

_logger = logging.getLogger("gateway.archive")


@dataclass(frozen=True)
class ArchivedRun:
    name: str
    identifier: str
    sequence: int
    path: str


@dataclass
class _IdentifierLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class ArchiveAllocator:
    def __init__(self, directory: str, tz: tzinfo, clock: Callable[[], datetime] | None = None):
        self.directory = directory
        self.tz = tz
        self._clock = clock or (lambda: datetime.now(tz))
        self._locks: dict[str, _IdentifierLock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _identifier_lock(self, identifier: str) -> Iterator[None]:
        # Entries live only while someone holds or waits on them.
        with self._locks_guard:
            entry = self._locks.get(identifier)
            if entry is None:
                entry = self._locks[identifier] = _IdentifierLock()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._locks[identifier]

    def ensure_directory(self) -> None:
        try:
            os.makedirs(self.directory, exist_ok=True)
        except OSError as e:
            raise StorageError(
                detail=f"Cannot create archive directory: {e.strerror or e}",
            ) from e

    def next_sequence(self, identifier: str) -> int:
        """Sequence the next artifact for ``identifier`` would get.

        Raises:
            StorageError: directory unreadable or the 4-hex-digit space is used up.
        """
        try:
            names = os.listdir(self.directory)
        except OSError as e:
            raise StorageError(detail=f"Cannot read archive directory: {e.strerror or e}") from e

        nxt = max(max_sequence(identifier, names) + 1, 0)
        if nxt > MAX_SEQUENCE:
            raise StorageError(
                detail=f"Sequence space exhausted for identifier {identifier}",
                identifier=identifier,
            )
        return nxt

    def archive(
        self,
        code: str,
        client_seed: str,
        caller_hash: str,
        language: str | None = None,
    ) -> ArchivedRun:
        """Persist ``code`` with its provenance header and return the new artifact.

        Raises:
            StorageError: the directory cannot be created or read, the name is
                already taken, or the write fails. No file is left behind in
                the last two cases.
        """
        extension, comment = resolve_language(language)
        identifier = derive_identifier(client_seed)
        self.ensure_directory()

        with self._identifier_lock(identifier):
            sequence = self.next_sequence(identifier)
            captured_at = self._clock().astimezone(self.tz)
            name = format_artifact_name(identifier, sequence, captured_at, self.tz, extension)
            header = Provenance(
                client_id=client_seed,
                caller_hash=caller_hash,
                captured_at=captured_at,
            ).render(comment)
            path = self._write_exclusive(name, header + code)

        _logger.info(
            "Archived run: name=%s identifier=%s seq=%d bytes=%d",
            name, identifier, sequence, len(code),
        )
        return ArchivedRun(name=name, identifier=identifier, sequence=sequence, path=path)

    def _write_exclusive(self, name: str, body: str) -> str:
        path = os.path.join(self.directory, name)
        try:
            f = open(path, "x", encoding="utf-8", newline="")
        except FileExistsError as e:
            raise StorageError(detail=f"Artifact name collision: {name}", name=name) from e
        except OSError as e:
            raise StorageError(detail=f"Cannot create artifact: {e.strerror or e}", name=name) from e

        try:
            with f:
                f.write(body)
        except (OSError, UnicodeError) as e:
            self._discard(path)
            raise StorageError(detail=f"Failed to write artifact: {e}", name=name) from e
        return path

    @staticmethod
    def _discard(path: str) -> None:
        try:
            os.remove(path)
        except OSError:
            _logger.warning("Could not remove partial artifact %s", path)
