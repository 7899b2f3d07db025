"""
Local build record storage.

One ``<id>.json`` file per build inside a target directory. Writes go to a
temporary sibling first and are moved into place with ``os.replace``.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterator, Optional, Set, Union

from build_mirror.ci_providers.models import BuildRecord
from build_mirror.exceptions import PersistenceFailure

logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".json"


class BuildStore:
    """Per-target-directory store of canonical build records."""

    def __init__(self, target_dir: Union[str, Path]):
        self.target_dir = Path(target_dir)

    def path_for(self, build_id: int) -> Path:
        return self.target_dir / f"{build_id}{RECORD_SUFFIX}"

    def _iter_ids(self) -> Iterator[int]:
        if not self.target_dir.is_dir():
            return
        for path in self.target_dir.glob(f"*{RECORD_SUFFIX}"):
            try:
                yield int(path.stem)
            except ValueError:
                logger.debug(f"Ignoring unexpected file in build dir: {path}")

    def existing_ids(self) -> Set[int]:
        """Ids of all persisted records. Empty when the directory does not exist."""
        return set(self._iter_ids())

    def last_build_id(self) -> Optional[int]:
        """
        Highest persisted build id, used as the resume point.

        Returns:
            The highest id, or None if the directory is absent or holds no records
        """
        return max(self._iter_ids(), default=None)

    def write(self, record: BuildRecord) -> Path:
        """
        Atomically write a record, replacing any previous file for the same id.

        Raises:
            PersistenceFailure: If the directory or file cannot be written
        """
        dest = self.path_for(record.id)
        tmp: Optional[Path] = None
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            # Unique per call, so concurrent writers of one id never share a temp file
            fd, tmp_name = tempfile.mkstemp(
                dir=dest.parent, prefix=f".{dest.name}.", suffix=".tmp"
            )
            tmp = Path(tmp_name)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(record.to_json_dict(), f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, dest)
        except OSError as e:
            if tmp is not None:
                tmp.unlink(missing_ok=True)
            raise PersistenceFailure(f"Failed to write build {record.id}: {e}", path=dest) from e
        return dest

    def read(self, build_id: int) -> Optional[BuildRecord]:
        path = self.path_for(build_id)
        try:
            with open(path, "r", encoding="utf-8") as f:
                return BuildRecord.model_validate(json.load(f))
        except FileNotFoundError:
            return None
