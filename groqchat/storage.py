"""File-backed key/value storage.

Each key is a single UTF-8 file under the data directory, the on-disk
counterpart of a browser's local storage. Values are plain strings; JSON
helpers sit on top for the structured keys. Read and write failures
surface as ``StorageError``.
"""

import json
import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Any, Optional

from .errors import StorageError

logger = logging.getLogger(__name__)

CREDENTIAL_KEY = "groq_api_key"
SETTINGS_KEY = "groq_settings"
ARCHIVE_KEY = "groq_chat_history"


def _restrict_acl(path: Path) -> None:
    """Drop inherited ACLs on Windows so only the current user can read *path*."""
    username = os.environ.get("USERNAME", "")
    if not username:
        logger.warning("Cannot restrict %s: USERNAME env var not set", path)
        return
    try:
        result = subprocess.run(
            ["icacls", str(path), "/inheritance:r", "/grant:r", f"{username}:F"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning("icacls failed for %s: %s", path, e)
        return
    if result.returncode != 0:
        logger.warning("icacls failed for %s: %s", path, result.stderr.strip())


def _write_private(path: Path, value: str) -> None:
    # Created 0600, so the secret is never on disk with a wider mode
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        if hasattr(os, "fchmod"):
            # os.open keeps the old mode of a file that already exists
            os.fchmod(f.fileno(), 0o600)
        f.write(value)
    if sys.platform == "win32":
        _restrict_acl(path)


class KeyValueStore:
    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        # The credential is a raw string, not JSON
        if key == CREDENTIAL_KEY:
            return self.root / key
        return self.root / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read {key}: {e}") from e

    def set_item(self, key: str, value: str, private: bool = False) -> None:
        path = self.path_for(key)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            if private:
                _write_private(path, value)
            else:
                path.write_text(value, encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to write {key}: {e}") from e

    def read_json(self, key: str) -> Any:
        """Return the decoded value under *key*, or ``None`` when it is absent.

        Raises ``StorageError`` when the file is unreadable or not valid JSON.
        """
        raw = self.get_item(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Malformed JSON under {key}: {e}") from e

    def write_json(self, key: str, value: Any) -> None:
        self.set_item(key, json.dumps(value, indent=2, ensure_ascii=False))
