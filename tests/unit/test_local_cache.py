"""Unit tests for LocalCache."""

import json
from pathlib import Path

from typequiz.schemas.profile import Profile
from typequiz.schemas.typology import TypologyResult
from typequiz.services.local_cache import KEY_PHONE, KEY_PROFILE, KEY_RESULT, LocalCache

RESULT = TypologyResult(ei=-4, sn=12, ft=6, jp=-10, code="ISFJ")


def make_profile() -> Profile:
    return Profile(first_name="Anna", last_name="Ivanova", phone="8 (915) 123-45-67", age=28, credential="secret1")


class TestLocalCache:
    """Tests for the in-memory cache."""

    def test_empty(self) -> None:
        cache = LocalCache()

        assert cache.load_result() is None
        assert cache.load_profile() is None
        assert cache.phone is None
        assert cache.theme == "dark"

    def test_result_roundtrip(self) -> None:
        cache = LocalCache()

        cache.save_result(RESULT)

        assert cache.load_result() == RESULT

    def test_profile_stores_canonical_phone(self) -> None:
        cache = LocalCache()

        cache.save_profile(make_profile())

        assert cache.phone == "79151234567"
        assert cache.load_profile().first_name == "Anna"
        assert "canonical_phone" not in cache.get(KEY_PROFILE)

    def test_start_retake_keeps_theme(self) -> None:
        cache = LocalCache()
        cache.theme = "light"
        cache.save_result(RESULT)
        cache.save_profile(make_profile())

        cache.start_retake()

        assert cache.theme == "light"
        assert cache.load_result() is None
        assert cache.load_profile() is None
        assert cache.phone is None

    def test_pop_retake_clears_flag(self) -> None:
        cache = LocalCache()
        cache.start_retake()

        assert cache.pop_retake() is True
        assert cache.pop_retake() is False

    def test_clear(self) -> None:
        cache = LocalCache()
        cache.save_profile(make_profile())

        cache.clear(keep=(KEY_PHONE,))

        assert cache.phone == "79151234567"
        assert cache.load_profile() is None


class TestLocalCacheFile:
    """Tests for the JSON write-through file."""

    def test_writes_through(self, tmp_path: Path) -> None:
        path = tmp_path / "sessions" / "token.json"
        cache = LocalCache(path)

        cache.save_result(RESULT)

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data[KEY_RESULT]["code"] == "ISFJ"

    def test_reloads_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "token.json"
        LocalCache(path).save_profile(make_profile())

        restored = LocalCache(path)

        assert restored.load_profile().canonical_phone == "79151234567"

    def test_ignores_unreadable_file(self, tmp_path: Path) -> None:
        path = tmp_path / "token.json"
        path.write_text("{not json", encoding="utf-8")

        cache = LocalCache(path)

        assert cache.load_result() is None
