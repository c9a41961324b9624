import json
import logging
import os
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List

from dota_cup.core.exceptions import CorruptStoreError

logger = logging.getLogger(__name__)

_locks: Dict[str, threading.RLock] = {}
_locks_guard = threading.Lock()


def _lock_for(path: str) -> threading.RLock:
    key = os.path.abspath(path)
    with _locks_guard:
        if key not in _locks:
            _locks[key] = threading.RLock()
        return _locks[key]


class JsonFileStore:
    """
    A JSON file holding a list of records.

    Every store opened on the same path shares one lock, so read-modify-write
    cycles done inside ``transaction()`` never interleave.
    """

    def __init__(self, data_file_path: str):
        self.data_file_path = data_file_path
        self.lock = _lock_for(data_file_path)
        # Ensure data directory exists
        directory = os.path.dirname(self.data_file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        if not os.path.exists(self.data_file_path):
            self.save([])

    def load(self, strict: bool = False) -> List[Dict[str, Any]]:
        """
        Reads every record. An undecodable file reads as empty unless
        ``strict`` is set, in which case it raises ``CorruptStoreError``.
        """
        if not os.path.exists(self.data_file_path):
            return []
        with self.lock:
            with open(self.data_file_path, "r") as f:
                content = f.read()
        if not content.strip():
            if strict:
                # save() never leaves an empty file behind
                raise CorruptStoreError(self.data_file_path, "file is empty")
            return []
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            if strict:
                logger.error("Refusing to write over undecodable %s: %s", self.data_file_path, e)
                raise CorruptStoreError(self.data_file_path, str(e))
            logger.warning("Could not decode JSON from %s, treating it as empty", self.data_file_path)
            return []

    def save(self, records: List[Dict[str, Any]]):
        tmp_path = f"{self.data_file_path}.tmp"
        with self.lock:
            with open(tmp_path, "w") as f:
                json.dump(records, f, indent=4, default=str)
            os.replace(tmp_path, self.data_file_path)

    @contextmanager
    def transaction(self) -> Iterator[List[Dict[str, Any]]]:
        """
        Yields the stored records for in-place modification.

        They are written back only if the block finishes without raising. A
        file that cannot be decoded is never replaced.
        """
        with self.lock:
            records = self.load(strict=True)
            yield records
            self.save(records)
