"""
JSON File Ledger Store

Each collection is one file holding a JSON array:

    <data_dir>/transactions.json
    <data_dir>/goals.json
    <data_dir>/recurringRules.json

Writes go to a temporary file in the same directory which then replaces
the target, so a crash mid-write never leaves a truncated collection.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from moneysaver.config import get_settings
from moneysaver.services.storage.interface import (
    Collection,
    LedgerStoreInterface,
    StorageUnavailableError,
)


class JsonFileLedgerStore(LedgerStoreInterface):
    """Whole-collection JSON files on local disk."""

    def __init__(self, data_dir: Optional[Path] = None):
        self._data_dir = Path(data_dir) if data_dir else get_settings().storage.data_dir

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, name: Collection) -> Path:
        """File backing a collection."""
        return self._data_dir / f"{Collection(name).value}.json"

    async def read_collection(self, name: Collection) -> list[dict[str, Any]]:
        path = self.path_for(name)
        if not path.exists():
            return []

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageUnavailableError(f"Failed to read {path.name}: {e}")

        if data is None:
            return []
        if not isinstance(data, list):
            raise StorageUnavailableError(
                f"Failed to read {path.name}: expected a JSON array"
            )
        return data

    async def write_collection(
        self,
        name: Collection,
        records: list[dict[str, Any]],
    ) -> bool:
        path = self.path_for(name)
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=path.parent,
                prefix=f".{path.stem}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                json.dump(list(records), f, indent=2)
                f.write("\n")
            os.replace(tmp_name, path)
            return True
        except (OSError, TypeError, ValueError) as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageUnavailableError(f"Failed to write {path.name}: {e}")
