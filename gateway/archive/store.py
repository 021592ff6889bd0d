import logging
import os
from datetime import datetime, tzinfo
from typing import Any

from gateway.archive.naming import is_bare_filename
from gateway.errors import NotFoundError, StorageError, ValidationError

_logger = logging.getLogger("gateway.admin")


class ArtifactStore:
    """Read and delete side of the archive directory, used by the admin routes."""

    def __init__(self, directory: str, tz: tzinfo):
        self.directory = directory
        self.tz = tz

    def list_runs(self) -> list[dict[str, Any]]:
        # The directory is created on first archive; before that there is nothing to list.
        try:
            entries = list(os.scandir(self.directory))
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageError(detail=f"Cannot read archive directory: {e.strerror or e}") from e

        runs = []
        for entry in entries:
            try:
                if not entry.is_file(follow_symlinks=False):
                    continue
                st = entry.stat(follow_symlinks=False)
            except OSError:
                continue
            runs.append({
                "name": entry.name,
                "size": st.st_size,
                "modTime": datetime.fromtimestamp(st.st_mtime, self.tz).isoformat(timespec="seconds"),
            })
        runs.sort(key=lambda r: r["name"])
        return runs

    def path_for(self, name: str) -> str:
        """Absolute path of an existing artifact.

        Raises:
            ValidationError: ``name`` is not a bare filename.
            NotFoundError: no such artifact.
        """
        if not is_bare_filename(name):
            raise ValidationError(detail="invalid filename")
        path = os.path.join(self.directory, name)
        if not os.path.isfile(path):
            raise NotFoundError(detail="file not found")
        return path

    def delete_many(self, names: list[str]) -> tuple[list[str], list[dict[str, str]]]:
        """Delete each name independently; returns ``(deleted, errors)``."""
        deleted: list[str] = []
        errors: list[dict[str, str]] = []
        for name in names:
            if not is_bare_filename(name):
                errors.append({"name": name, "error": "invalid filename"})
                continue
            path = os.path.join(self.directory, name)
            try:
                if not os.path.isfile(path):
                    raise FileNotFoundError(path)
                os.remove(path)
            except FileNotFoundError:
                errors.append({"name": name, "error": "file not found"})
                continue
            except OSError as e:
                errors.append({"name": name, "error": e.strerror or str(e)})
                continue
            deleted.append(name)

        if deleted:
            _logger.info("Deleted %d run artifact(s): %s", len(deleted), ", ".join(deleted))
        if errors:
            _logger.warning("Failed to delete %d run artifact(s)", len(errors))
        return deleted, errors
