"""Client-local persisted state: a JSON file standing in for browser localStorage."""
import json
import logging
import os
import tempfile
from pathlib import Path

from app.core.config import settings

logger = logging.getLogger(__name__)

PRIVATE_KEY_STORAGE_KEY = "viewza_e2e_private_key"


class LocalKeyStore:
    """String key/value store; the E2E private key is one JSON blob under a fixed key."""

    def __init__(self, path: str | Path | None = None):
        # Defaults to E2E_KEY_STORE_PATH
        self.path = Path(path or settings.e2e_key_store_path)

    def _read_all(self) -> dict[str, str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("Local storage %s unreadable, starting empty: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".storage-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def get_item(self, key: str) -> str | None:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove_item(self, key: str) -> None:
        data = self._read_all()
        if data.pop(key, None) is not None:
            self._write_all(data)

    def get_private_key(self) -> dict | None:
        """Stored private JWK, or None when missing or not valid JSON."""
        stored = self.get_item(PRIVATE_KEY_STORAGE_KEY)
        if not stored:
            return None
        try:
            jwk = json.loads(stored)
        except ValueError:
            return None
        return jwk if isinstance(jwk, dict) else None

    def set_private_key(self, jwk: dict) -> None:
        self.set_item(PRIVATE_KEY_STORAGE_KEY, json.dumps(jwk))
