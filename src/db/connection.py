"""JSON data file management

Users, tasks and campaigns live in pretty-printed JSON documents. Writes are plain
overwrites with no cross-process locking: concurrent requests touching the
same player follow read -> mutate -> write and the last write wins.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiofiles

from src.config import CAMPAIGNS_FILE, TASKS_FILE, USERS_FILE
from src.exceptions import wrap_storage_exception

logger = logging.getLogger(__name__)

DOCUMENTS = ("users", "tasks", "campaigns")


def next_record_id(records: List[Dict[str, Any]], stored_next: Any) -> int:
    """Stored nextId when it is ahead of every record id, else max id + 1"""
    max_id = max(
        (record["id"] for record in records
         if isinstance(record.get("id"), int) and not isinstance(record.get("id"), bool)),
        default=0
    )
    if isinstance(stored_next, int) and not isinstance(stored_next, bool) and stored_next > max_id:
        return stored_next
    return max_id + 1


class JsonDataStore:
    """Resolve, read and write the JSON data documents"""

    def __init__(
        self,
        users_file: Path = USERS_FILE,
        tasks_file: Path = TASKS_FILE,
        campaigns_file: Path = CAMPAIGNS_FILE
    ):
        self._defaults: Dict[str, Path] = {
            "users": Path(users_file),
            "tasks": Path(tasks_file),
            "campaigns": Path(campaigns_file),
        }
        self._overrides: Dict[str, Path] = {}

    def configure(self, **paths: Optional[Path]) -> None:
        """Override document paths (e.g. configure(users=tmp / 'users.json'))"""
        for name, value in paths.items():
            if name not in DOCUMENTS:
                raise ValueError(f"Unknown data document: {name}")
            if value:
                self._overrides[name] = Path(value)

    def reset_overrides(self) -> None:
        self._overrides.clear()

    def path_for(self, name: str) -> Path:
        return self._overrides.get(name, self._defaults[name])

    async def read_document(self, name: str) -> Dict[str, Any]:
        """
        Load a document

        Returns:
            Parsed JSON object, or an empty dict when the file does not exist
            yet or does not hold an object

        Raises:
            PersistenceError: File exists but cannot be read or parsed
        """
        path = self.path_for(name)
        if not path.exists():
            logger.debug(f"Data file {path} not found, starting empty")
            return {}
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                content = await f.read()
            parsed = json.loads(content)
        except (OSError, ValueError) as e:
            raise wrap_storage_exception(e, operation=f"read_{name}", path=str(path))

        if not isinstance(parsed, dict):
            logger.warning(f"Data file {path} does not contain an object, ignoring contents")
            return {}
        return parsed

    async def write_document(self, name: str, data: Dict[str, Any]) -> None:
        """
        Persist a document

        Raises:
            PersistenceError: File cannot be written
        """
        path = self.path_for(name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            payload = json.dumps(data, indent=2)
            async with aiofiles.open(path, "w", encoding="utf-8") as f:
                await f.write(payload)
        except (OSError, TypeError, ValueError) as e:
            raise wrap_storage_exception(e, operation=f"write_{name}", path=str(path))
        logger.debug(f"Wrote {name} document to {path}")


# Global data store instance
db = JsonDataStore()
