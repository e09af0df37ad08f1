# schedule_analytics/baseline/baseline_store.py

from __future__ import annotations

import copy
import json
import re
from pathlib import Path
from typing import Any, Dict, List, Protocol

from schedule_analytics.exceptions import BaselineStoreError
from schedule_analytics.logging_config import get_logger

logger = get_logger("baseline.store")

STORAGE_KEY = "project_baselines"

# Path separators would let a project id leave the store directory
_UNSAFE_ID = re.compile(r"[\\/\x00]")


class BaselineStore(Protocol):
    """Key-value persistence for baseline records, keyed by project id."""

    def load(self, project_id: str) -> List[Dict[str, Any]]:
        ...

    def save(self, project_id: str, records: List[Dict[str, Any]]) -> None:
        ...


class InMemoryBaselineStore:
    """Process-local store; records are copied in and out."""

    def __init__(self):
        self._data: Dict[str, List[Dict[str, Any]]] = {}

    def load(self, project_id: str) -> List[Dict[str, Any]]:
        return copy.deepcopy(self._data.get(project_id, []))

    def save(self, project_id: str, records: List[Dict[str, Any]]) -> None:
        self._data[project_id] = copy.deepcopy(list(records))

    def projects(self) -> List[str]:
        return sorted(self._data)


class JsonFileBaselineStore:
    """
    One JSON file per project: ``<directory>/project_baselines_<project_id>.json``.
    """

    def __init__(self, directory):
        self.directory = Path(directory)

    def _path(self, project_id: str) -> Path:
        if not project_id or _UNSAFE_ID.search(str(project_id)):
            raise BaselineStoreError(project_id, "project id is not usable as a file name")
        return self.directory / f"{STORAGE_KEY}_{project_id}.json"

    def load(self, project_id: str) -> List[Dict[str, Any]]:
        path = self._path(project_id)
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise BaselineStoreError(project_id, f"cannot read {path}: {e}") from e
        if not isinstance(data, list):
            raise BaselineStoreError(project_id, f"{path} does not hold a list of baselines")
        return data

    def save(self, project_id: str, records: List[Dict[str, Any]]) -> None:
        path = self._path(project_id)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".json.tmp")
            tmp.write_text(json.dumps(records, indent=2), encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            raise BaselineStoreError(project_id, f"cannot write {path}: {e}") from e
        logger.debug("Wrote %d baselines to %s", len(records), path)

    def projects(self) -> List[str]:
        prefix = f"{STORAGE_KEY}_"
        return sorted(
            p.stem[len(prefix):]
            for p in self.directory.glob(f"{prefix}*.json")
        )
