"""Persistence for a user's transactions, budgets and goals.

Callers read a ``Snapshot`` from a store, pass its tuples into the pure
functions of the package, and save a new snapshot back. No module reads
records from ambient state.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from compass import config
from compass.errors import StoreError
from compass.logging_setup import get_logger
from compass.transforms import Snapshot, records_from_dict, records_to_dict

logger = get_logger(__name__)


class FinanceStore(ABC):

    @abstractmethod
    def snapshot(self) -> Snapshot:
        pass

    @abstractmethod
    def save(self, snapshot: Snapshot) -> None:
        pass


class MemoryStore(FinanceStore):

    def __init__(self, snapshot: Optional[Snapshot] = None):
        self._snapshot = snapshot or Snapshot()

    def snapshot(self) -> Snapshot:
        return self._snapshot

    def save(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot


class JsonStore(FinanceStore):
    """One JSON document per user under ``data_dir``."""

    def __init__(self, user_id: Optional[str] = None, data_dir: Optional[Path] = None):
        self.user_id = user_id or config.USER_ID
        self.path = config.user_store_path(self.user_id, data_dir)

    def snapshot(self) -> Snapshot:
        if not self.path.exists():
            logger.info("no document for user %s at %s, starting empty", self.user_id, self.path)
            return Snapshot()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return records_from_dict(json.load(f))
        except (OSError, json.JSONDecodeError, TypeError) as e:
            raise StoreError(f"Could not read finance document {self.path}: {e}") from e

    def save(self, snapshot: Snapshot) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records_to_dict(snapshot), f, indent=2)
            os.replace(tmp, self.path)
        except (OSError, TypeError, ValueError) as e:
            raise StoreError(f"Could not write finance document {self.path}: {e}") from e
        finally:
            if os.path.exists(tmp):
                os.remove(tmp)
        logger.debug(
            "saved %d transactions, %d budgets, %d goals for %s",
            len(snapshot.transactions), len(snapshot.budgets), len(snapshot.goals), self.user_id,
        )
