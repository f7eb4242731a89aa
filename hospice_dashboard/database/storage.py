"""
Simple JSON file storage

- One JSON file per key, standing in for the browser's local storage
- Whole-value get/set only, no partial updates
- Malformed or missing files fall back to a default instead of raising
- Patient records saved with spreadsheet headers are read back with canonical
  keys; records that still do not validate are skipped with a warning
- Write failures raise PersistenceError so callers can keep the in-memory change and warn
"""
import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from hospice_dashboard.database.schemas import Patient
from hospice_dashboard.exceptions import PersistenceError
from hospice_dashboard.services.patient_records import upgrade_stored_record

logger = logging.getLogger(__name__)

TASK_COMPLETION_KEY = "taskCompletionData"
ACTIVE_PATIENTS_KEY = "activePatients"
ARCHIVED_PATIENTS_KEY = "archivedPatients"


def read_json(filepath: str, default: Any = None) -> Any:
    """
    Read JSON file, return default if not found or unreadable
    """
    path = Path(filepath)
    try:
        with open(path, 'r') as f:
            return json.load(f)
    except FileNotFoundError:
        return default
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning(f"Malformed JSON in {path}, using default: {e}")
        return default
    except OSError as e:
        logger.warning(f"Could not read {path}, using default: {e}")
        return default


def write_json(filepath: str, data: Any):
    """
    Write data to JSON file
    """
    path = Path(filepath)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(data, f, indent=2)
    except (OSError, TypeError) as e:
        raise PersistenceError(f"Failed to write {path}: {e}") from e


class KeyValueStore:
    """
    Durable key-value store interface
    """

    def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def set(self, key: str, value: Any):
        raise NotImplementedError

    def delete(self, key: str):
        raise NotImplementedError


class JsonFileStore(KeyValueStore):
    """
    Stores each key as data_dir/<key>.json
    """

    def __init__(self, data_dir: str = "data"):
        self.data_dir = Path(data_dir)

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def get(self, key: str, default: Any = None) -> Any:
        return read_json(str(self._path(key)), default)

    def set(self, key: str, value: Any):
        write_json(str(self._path(key)), value)

    def delete(self, key: str):
        path = self._path(key)
        if path.exists():
            path.unlink()


class MemoryStore(KeyValueStore):
    """
    In-process store for tests and ephemeral sessions
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any):
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str):
        self._data.pop(key, None)


class DashboardStorage:
    """
    Persistence adapter for task trees and patient collections

    Values of the wrong shape are treated like corrupted data: an empty
    collection is returned and a warning logged.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    def _get_list(self, key: str) -> List[Dict[str, Any]]:
        data = self.store.get(key, [])
        if not isinstance(data, list):
            logger.warning(f"Stored value for {key} is not a list, using empty list")
            return []

        records = []
        for item in data:
            if not isinstance(item, dict):
                logger.warning(f"Skipping non-object entry in {key}")
                continue
            record = upgrade_stored_record(item)
            try:
                Patient.model_validate(record)
            except ValidationError as e:
                logger.warning(f"Skipping malformed patient record in {key}: {e}")
                continue
            records.append(record)
        return records

    def get_task_completion_data(self) -> Dict[str, List[Dict[str, Any]]]:
        data = self.store.get(TASK_COMPLETION_KEY, {})
        if not isinstance(data, dict):
            logger.warning(f"Stored value for {TASK_COMPLETION_KEY} is not a mapping, using empty mapping")
            return {}
        return data

    def save_task_completion_data(self, data: Dict[str, List[Dict[str, Any]]]):
        self.store.set(TASK_COMPLETION_KEY, data)

    def get_active_patients(self) -> List[Dict[str, Any]]:
        return self._get_list(ACTIVE_PATIENTS_KEY)

    def save_active_patients(self, patients: List[Dict[str, Any]]):
        self.store.set(ACTIVE_PATIENTS_KEY, patients)

    def get_archived_patients(self) -> List[Dict[str, Any]]:
        return self._get_list(ARCHIVED_PATIENTS_KEY)

    def save_archived_patients(self, patients: List[Dict[str, Any]]):
        self.store.set(ARCHIVED_PATIENTS_KEY, patients)
