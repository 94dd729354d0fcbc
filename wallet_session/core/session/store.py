"""
Session Store

Best-effort persistence of the connected account and chain so a session can be
restored after a restart. Every backend call is fail-soft: storage problems are
logged and the caller carries on as if nothing was stored.
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Tuple

from .models import PersistedSession


logger = logging.getLogger(__name__)


ACCOUNT_KEY = "connectedAccount"
CHAIN_KEY = "connectedChain"

# Owner read/write only
SECURE_FILE_MODE = 0o600


class KeyValueBackend(ABC):
    """Synchronous string key-value storage. Implementations may raise; the store catches."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass


class MemoryBackend(KeyValueBackend):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileBackend(KeyValueBackend):
    """Keeps all keys in one small JSON object on disk."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Session file {self.path} does not hold an object")
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        if os.name == "posix":
            os.chmod(tmp_path, SECURE_FILE_MODE)
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def _read_for_update(self) -> Tuple[Dict[str, str], bool]:
        """Current contents, or an empty object (flagged dirty) when the file is unreadable."""
        try:
            return self._read(), False
        except ValueError as e:
            logger.warning(f"Session file {self.path} is corrupt, overwriting: {e}")
            return {}, True

    def set(self, key: str, value: str) -> None:
        data, _ = self._read_for_update()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data, dirty = self._read_for_update()
        if key in data or dirty:
            data.pop(key, None)
            self._write(data)


class SessionStore:
    """Persists {account, chainId} under the ``connectedAccount``/``connectedChain`` keys."""

    def __init__(self, backend: KeyValueBackend, logger: Optional[logging.Logger] = None):
        self.backend = backend
        self.logger = logger or logging.getLogger(__name__)

    def _get(self, key: str) -> str:
        try:
            return self.backend.get(key) or ""
        except Exception as e:
            self.logger.error(f"Failed to read {key} from session store: {e}")
            return ""

    def _set(self, key: str, value: str) -> None:
        try:
            self.backend.set(key, value)
        except Exception as e:
            self.logger.error(f"Failed to write {key} to session store: {e}")

    def _remove(self, key: str) -> None:
        try:
            self.backend.remove(key)
        except Exception as e:
            self.logger.error(f"Failed to remove {key} from session store: {e}")

    def save(self, account: str, chain_id: str) -> None:
        """Write whichever of account/chain is non-empty."""
        if account:
            self._set(ACCOUNT_KEY, account)
        if chain_id:
            self._set(CHAIN_KEY, chain_id)

    def load(self) -> PersistedSession:
        return PersistedSession(account=self._get(ACCOUNT_KEY), chain_id=self._get(CHAIN_KEY))

    def clear(self) -> None:
        self._remove(ACCOUNT_KEY)
        self._remove(CHAIN_KEY)


def file_session_store(path: Path) -> SessionStore:
    return SessionStore(JsonFileBackend(path))


def memory_session_store(initial: Optional[Dict[str, str]] = None) -> SessionStore:
    return SessionStore(MemoryBackend(initial))
