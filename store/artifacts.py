"""
Artifact Store

Purpose: Persist builder artifacts to disk, one JSON file per root.

Records are write-once. create() writes the full content to a temporary
file in the same directory and hard-links it into place; the link fails
if the target exists, so concurrent builders can never overwrite each
other and readers never observe a partially written record.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from core.crypto.hashing import is_digest, normalize_digest
from core.schemas.errors import (
    DuplicateCommitmentException,
    StorageIOException,
    ValidationException,
)
from core.schemas.release import CommitmentArtifact


logger = logging.getLogger(__name__)

ARTIFACT_SUFFIX = ".json"


class ArtifactStore:
    """
    Directory of commitment artifacts keyed by root.

    Usage:
        store = ArtifactStore("./deposits")
        store.create(artifact)
        artifact = store.load(artifact.root)
    """

    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir)

    def path_for(self, root: str) -> Path:
        """Path of the record for root (the file may not exist)."""
        try:
            root = normalize_digest(root)
        except ValueError as e:
            raise ValidationException(str(e), field_path="root") from e
        return self.base_dir / f"{root}{ARTIFACT_SUFFIX}"

    def exists(self, root: str) -> bool:
        return self.path_for(root).exists()

    def create(self, artifact: CommitmentArtifact) -> Path:
        """
        Persist an artifact if no record exists for its root.

        Returns:
            Path of the created record

        Raises:
            DuplicateCommitmentException: If a record for the root already exists
            StorageIOException: If the record cannot be written
        """
        target = self.path_for(artifact.root)
        data = artifact.to_json().encode("utf-8")
        tmp_name: str | None = None

        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.base_dir, prefix=".tmp-", suffix=ARTIFACT_SUFFIX
            )
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            try:
                os.link(tmp_name, target)
            except FileExistsError:
                raise DuplicateCommitmentException(artifact.root) from None
        except OSError as e:
            raise StorageIOException(
                f"Failed to write artifact: {e}",
                path=str(target),
            ) from e
        finally:
            if tmp_name is not None:
                with contextlib.suppress(FileNotFoundError):
                    os.unlink(tmp_name)

        logger.debug(f"Wrote artifact {target}")
        return target

    def load(self, root: str) -> CommitmentArtifact:
        """
        Load and validate the artifact for root.

        Raises:
            StorageIOException: If the record is missing, unreadable or malformed
        """
        path = self.path_for(root)
        try:
            raw = path.read_bytes()
        except FileNotFoundError as e:
            raise StorageIOException(f"Artifact not found for root {root}", path=str(path)) from e
        except OSError as e:
            raise StorageIOException(f"Failed to read artifact: {e}", path=str(path)) from e

        try:
            artifact = CommitmentArtifact.model_validate(json.loads(raw.decode("utf-8")))
        except (UnicodeDecodeError, json.JSONDecodeError, PydanticValidationError) as e:
            raise StorageIOException(
                f"Malformed artifact for root {root}: {e}",
                path=str(path),
            ) from e

        if artifact.root != normalize_digest(root):
            raise StorageIOException(
                f"Artifact root mismatch: file for {root} contains {artifact.root}",
                path=str(path),
            )
        return artifact

    def list_roots(self) -> list[str]:
        """Roots of all stored artifacts, sorted."""
        if not self.base_dir.is_dir():
            return []
        roots = [
            p.stem for p in self.base_dir.iterdir()
            if p.suffix == ARTIFACT_SUFFIX and is_digest(p.stem)
        ]
        return sorted(roots)


__all__ = [
    "ARTIFACT_SUFFIX",
    "ArtifactStore",
]
