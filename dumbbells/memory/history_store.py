"""Bounded workout history storage."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import TypeAdapter, ValidationError

from dumbbells.models.workout_log import CompletedSet, WorkoutHistoryEntry

logger = logging.getLogger(__name__)

_HISTORY_ADAPTER = TypeAdapter(List[WorkoutHistoryEntry])


class WorkoutHistoryStore:
    """Keep the most recent workouts under a single storage key.

    Subclasses only move the serialized payload in and out of their backend;
    encoding, eviction and corruption handling live here.
    """

    HISTORY_KEY = "WorkoutHistory"
    MAX_ENTRIES = 10

    def __init__(self, max_entries: int = MAX_ENTRIES) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self.max_entries = max_entries

    def _read_payload(self) -> Optional[str]:
        raise NotImplementedError

    def _write_payload(self, payload: str) -> None:
        raise NotImplementedError

    def _delete_payload(self) -> None:
        raise NotImplementedError

    def save(self, entry: WorkoutHistoryEntry) -> None:
        """
        Append a workout, evicting the oldest entries beyond ``max_entries``.

        Args:
            entry: Finished workout to store
        """
        history = self.load_history()
        history.append(entry)

        if len(history) > self.max_entries:
            history = history[-self.max_entries:]

        data = _HISTORY_ADAPTER.dump_python(history, mode="json", by_alias=True)
        payload = json.dumps(data, ensure_ascii=False, indent=2)

        try:
            self._write_payload(payload)
            logger.info(
                f"Saved workout for {entry.exercise_name} ({len(entry.sets)} sets), "
                f"history size {len(history)}"
            )
        except OSError as e:
            # History is best effort; never interrupt the workout flow
            logger.error(f"Failed to save workout history: {e}")

    def load_history(self) -> List[WorkoutHistoryEntry]:
        """
        Load all stored workouts, oldest first.

        Returns:
            List of entries, or an empty list if nothing is stored or the
            stored payload cannot be decoded
        """
        try:
            payload = self._read_payload()
        except OSError as e:
            logger.warning(f"Failed to read workout history: {e}")
            return []

        if not payload:
            return []

        try:
            return _HISTORY_ADAPTER.validate_json(payload)
        except (ValidationError, ValueError) as e:
            logger.warning(f"Ignoring corrupt workout history: {e}")
            return []

    def load_previous(self, exercise_name: str) -> List[CompletedSet]:
        """
        Get the sets of the most recent workout for an exercise.

        Args:
            exercise_name: Exact exercise name

        Returns:
            Completed sets of the latest matching workout, or an empty list
        """
        for entry in reversed(self.load_history()):
            if entry.exercise_name == exercise_name:
                return entry.sets
        return []

    def clear(self) -> None:
        """Delete all stored history."""
        try:
            self._delete_payload()
        except OSError as e:
            logger.error(f"Failed to clear workout history: {e}")


class InMemoryHistoryStore(WorkoutHistoryStore):
    """History kept in a plain key/value mapping for the life of the process."""

    def __init__(
        self, storage: Optional[Dict[str, str]] = None, max_entries: int = WorkoutHistoryStore.MAX_ENTRIES
    ) -> None:
        super().__init__(max_entries=max_entries)
        self.storage = storage if storage is not None else {}

    def _read_payload(self) -> Optional[str]:
        return self.storage.get(self.HISTORY_KEY)

    def _write_payload(self, payload: str) -> None:
        self.storage[self.HISTORY_KEY] = payload

    def _delete_payload(self) -> None:
        self.storage.pop(self.HISTORY_KEY, None)


class JsonFileHistoryStore(WorkoutHistoryStore):
    """History stored in a JSON file as ``{"WorkoutHistory": [...]}``.

    Other top-level keys in the file are preserved on write.
    """

    def __init__(
        self, path: Union[str, Path], max_entries: int = WorkoutHistoryStore.MAX_ENTRIES
    ) -> None:
        super().__init__(max_entries=max_entries)
        self.path = Path(path).expanduser()

    def _load_document(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as fh:
            document = json.load(fh)
        if not isinstance(document, dict):
            raise ValueError(f"Expected a JSON object in {self.path}")
        return document

    def _read_payload(self) -> Optional[str]:
        try:
            document = self._load_document()
        except ValueError as e:
            logger.warning(f"Unreadable history file {self.path}: {e}")
            return None

        history = document.get(self.HISTORY_KEY)
        if history is None:
            return None
        return json.dumps(history, ensure_ascii=False)

    def _write_payload(self, payload: str) -> None:
        try:
            document = self._load_document()
        except ValueError:
            document = {}
        document[self.HISTORY_KEY] = json.loads(payload)
        self._write_document(document)

    def _delete_payload(self) -> None:
        try:
            document = self._load_document()
        except ValueError:
            document = {}
        if document.pop(self.HISTORY_KEY, None) is not None or self.path.exists():
            self._write_document(document)

    def _write_document(self, document: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise
