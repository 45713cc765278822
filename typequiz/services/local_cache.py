"""Per-session cache used to resume a respondent where they left off.

The cache is the source of truth for the active session: it is written
before any remote call so a failed upsert never loses a finished quiz.
"""

import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any, Literal

from typequiz.schemas.profile import Profile
from typequiz.schemas.typology import TypologyResult

logger = logging.getLogger(__name__)

Theme = Literal["light", "dark"]

KEY_RESULT = "result"
KEY_PROFILE = "profile"
KEY_PHONE = "phone"
KEY_THEME = "theme"
KEY_RETAKE = "retake"

DEFAULT_THEME: Theme = "dark"


class LocalCache:
    """Small key-value store, optionally mirrored to a JSON file."""

    def __init__(self, path: Path | None = None) -> None:
        """Initialize the cache.

        Args:
            path: JSON file to load from and write through to. Memory only when None.
        """
        self.path = path
        self._data: dict[str, Any] = {}
        self._lock = Lock()
        if path is not None and path.exists():
            try:
                self._data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.warning("Ignoring unreadable session cache %s: %s", path, e)

    def _write(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._data), encoding="utf-8")

    def get(self, key: str) -> Any:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value
            self._write()

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)
            self._write()

    def clear(self, keep: tuple[str, ...] = ()) -> None:
        """Drop every key except those listed in ``keep``."""
        with self._lock:
            self._data = {k: v for k, v in self._data.items() if k in keep}
            self._write()

    # Typed accessors

    def load_result(self) -> TypologyResult | None:
        raw = self.get(KEY_RESULT)
        if not raw:
            return None
        return TypologyResult.model_validate(raw)

    def save_result(self, result: TypologyResult) -> None:
        self.set(KEY_RESULT, result.model_dump(mode="json"))

    def load_profile(self) -> Profile | None:
        raw = self.get(KEY_PROFILE)
        if not raw:
            return None
        return Profile.model_validate(raw)

    def save_profile(self, profile: Profile) -> None:
        self.set(KEY_PROFILE, profile.model_dump(mode="json", exclude={"canonical_phone"}))
        self.set(KEY_PHONE, profile.canonical_phone)

    @property
    def phone(self) -> str | None:
        return self.get(KEY_PHONE)

    @property
    def theme(self) -> Theme:
        return self.get(KEY_THEME) or DEFAULT_THEME

    @theme.setter
    def theme(self, value: Theme) -> None:
        self.set(KEY_THEME, value)

    def pop_retake(self) -> bool:
        """Read and clear the "retaking the test" flag."""
        flag = bool(self.get(KEY_RETAKE))
        self.remove(KEY_RETAKE)
        return flag

    def start_retake(self) -> None:
        """Forget the session but keep the theme, and mark the next login as a retake."""
        self.clear(keep=(KEY_THEME,))
        self.set(KEY_RETAKE, True)
