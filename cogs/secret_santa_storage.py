"""
Secret Santa Storage Module - Key-Value Persistence

RESPONSIBILITIES:
- Key-value store interface (get / set / remove, JSON values)
- JSON file store with atomic writes and backup fallback
- Roster and result load/save helpers with silent recovery

STORED KEYS:
- secret_santa_employees: [{"key": ..., "displayName": ...}, ...]
- secret_santa_result:    {"pairs": [...], "unmatched": [...]} or absent

FAILURE POLICY:
- Reads never raise: missing/malformed data becomes an empty roster or None
- Writes are best-effort: failures are logged, a .backup write is attempted,
  and the caller gets False

ISOLATION:
- No Discord dependencies
- Can be tested independently
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .secret_santa_pairing import PairingResult
from .secret_santa_roster import Participant, RosterState, deduplicate

ROSTER_KEY = "secret_santa_employees"
RESULT_KEY = "secret_santa_result"

DEFAULT_STORE_FILE = Path("secret_santa_store.json")


def load_json(path: Path) -> Any:
    """Read JSON as UTF-8; empty file reads as {}. Raises on unreadable/malformed data"""
    text = path.read_text(encoding='utf-8').strip()
    return json.loads(text) if text else {}


def save_json(path: Path, data: Any):
    """Save JSON atomically (temp file + rename)"""
    temp = path.with_suffix('.tmp')
    try:
        temp.write_text(
            json.dumps(data, indent=2, ensure_ascii=False),
            encoding='utf-8'
        )
        temp.replace(path)
    except Exception:
        # Clean up temp file if save failed
        if temp.exists():
            try:
                temp.unlink()
            except OSError:
                pass
        raise  # Re-raise so caller knows save failed


class KeyValueStore:
    """Synchronous key-value store holding JSON-serializable values"""

    def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> bool:
        raise NotImplementedError

    def remove(self, key: str) -> bool:
        raise NotImplementedError


class JsonFileStore(KeyValueStore):
    """
    All keys live in one JSON object on disk.

    Fallback chain on read:
    1. Backup file, if it is newer than the main file (the last main write failed)
    2. Main file
    3. Backup file (if main is missing or corrupted)
    4. Empty store

    A successful main write removes the backup.
    """

    def __init__(self, path: Union[str, Path] = DEFAULT_STORE_FILE, logger: Optional[logging.Logger] = None):
        self.path = Path(path)
        self.backup_path = self.path.with_suffix('.backup')
        self.logger = logger

    def _load_file(self, path: Path) -> Optional[Dict[str, Any]]:
        if not path.exists():
            return None
        try:
            data = load_json(path)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            if self.logger:
                self.logger.warning(f"Unreadable store file {path}: {e}")
            return None

        if not isinstance(data, dict):
            if self.logger:
                self.logger.warning(f"Store file {path} is not a JSON object, ignoring it")
            return None
        return data

    def _backup_is_newer(self) -> bool:
        # A backup only exists while the last write to the main file failed
        try:
            return self.backup_path.stat().st_mtime >= self.path.stat().st_mtime
        except OSError:
            return False

    def _read(self) -> Dict[str, Any]:
        if self._backup_is_newer():
            data = self._load_file(self.backup_path)
            if data is not None:
                if self.logger:
                    self.logger.info(f"Loaded store from newer backup {self.backup_path.name}")
                return data

        data = self._load_file(self.path)
        if data is not None:
            return data

        data = self._load_file(self.backup_path)
        if data is not None:
            if self.logger:
                self.logger.info(f"Loaded store from backup {self.backup_path.name}")
            return data

        return {}

    def _write(self, data: Dict[str, Any]) -> bool:
        try:
            save_json(self.path, data)
        except Exception as e:
            if self.logger:
                self.logger.error(f"Failed to save store {self.path}: {e}", exc_info=True)
        else:
            self._drop_stale_backup()
            return True
        # Try to save a backup
        try:
            save_json(self.backup_path, data)
            if self.logger:
                self.logger.warning(f"Saved to backup file: {self.backup_path}")
        except Exception as backup_error:
            if self.logger:
                self.logger.error(f"Backup save also failed: {backup_error}")
        return False

    def _drop_stale_backup(self):
        if not self.backup_path.exists():
            return
        try:
            self.backup_path.unlink()
        except OSError as e:
            if self.logger:
                self.logger.warning(f"Could not remove stale backup {self.backup_path}: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> bool:
        data = self._read()
        data[key] = value
        return self._write(data)

    def remove(self, key: str) -> bool:
        data = self._read()
        if key not in data:
            return True
        del data[key]
        return self._write(data)


def load_roster(store: KeyValueStore, logger: Optional[logging.Logger] = None) -> List[Participant]:
    """Load the persisted roster; anything unusable becomes an empty roster"""
    raw = store.get(ROSTER_KEY)
    if raw is None:
        return []

    if not isinstance(raw, list):
        if logger:
            logger.warning("Stored roster is not a list, starting with an empty roster")
        return []

    participants = deduplicate(Participant.from_dict(entry) for entry in raw)
    if logger and len(participants) != len(raw):
        logger.info(f"Dropped {len(raw) - len(participants)} invalid or duplicate roster entries")
    return participants


def save_roster(store: KeyValueStore, participants: List[Participant]) -> bool:
    return store.set(ROSTER_KEY, [p.to_dict() for p in deduplicate(participants)])


def clear_roster(store: KeyValueStore) -> bool:
    return store.remove(ROSTER_KEY)


def load_result(store: KeyValueStore, logger: Optional[logging.Logger] = None) -> Optional[PairingResult]:
    """Load the last result, or None if absent or malformed"""
    raw = store.get(RESULT_KEY)
    if raw is None:
        return None

    result = PairingResult.from_dict(raw)
    if result is None and logger:
        logger.warning("Stored pairing result is malformed, ignoring it")
    return result


def save_result(store: KeyValueStore, result: PairingResult) -> bool:
    return store.set(RESULT_KEY, result.to_dict())


def clear_result(store: KeyValueStore) -> bool:
    return store.remove(RESULT_KEY)


def load_roster_state(store: KeyValueStore, logger: Optional[logging.Logger] = None) -> RosterState:
    """Restore roster and last result at startup"""
    state = RosterState(load_roster(store, logger), load_result(store, logger))
    if logger:
        logger.info(
            f"Roster loaded: {len(state)} participants, "
            f"result stored: {state.last_result is not None}"
        )
    return state


__all__ = [
    'ROSTER_KEY', 'RESULT_KEY', 'DEFAULT_STORE_FILE',
    'load_json', 'save_json', 'KeyValueStore', 'JsonFileStore',
    'load_roster', 'save_roster', 'clear_roster',
    'load_result', 'save_result', 'clear_result', 'load_roster_state',
]
