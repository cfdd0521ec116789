"""
Tests for the Streamlit console, driven headless with AppTest.

Each test points DATA_FILE at its own snapshot under tmp_path.
"""

import json
from pathlib import Path

import pytest
import streamlit as st
from streamlit.testing.v1 import AppTest

APP_PATH = Path(__file__).parents[1] / "app" / "main.py"


@pytest.fixture
def data_file(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("STORAGE_BACKEND", "local")
    path = tmp_path / "snapshot.json"
    monkeypatch.setenv("DATA_FILE", str(path))
    st.cache_resource.clear()
    yield path
    st.cache_resource.clear()


def run_app() -> AppTest:
    at = AppTest.from_file(str(APP_PATH), default_timeout=30)
    return at.run()


class TestLockSweepOnRender:
    """The console releases locks that ran out while it was closed."""

    def test_expired_lock_released_and_saved(self, data_file):
        data_file.write_text(json.dumps({
            "bookings": [{
                "id": "LOCK-1577880000000",
                "guest_name": "Somchai",
                "room_number": "101",
                "check_in": "2020-01-01",
                "check_out": "2020-01-02",
                "total_amount": "1500",
                "status": "locked",
                "locked_until": "2020-01-01T13:00:00+00:00",
            }],
        }), encoding="utf-8")

        at = run_app()

        assert not at.exception
        assert json.loads(data_file.read_text(encoding="utf-8"))["bookings"] == []


class TestUnsavedSessionWarning:
    """A failed load keeps warning that nothing is being saved."""

    def test_corrupt_snapshot_warns_on_every_render(self, data_file):
        data_file.write_text("[1, 2, 3]", encoding="utf-8")

        at = run_app()
        assert not at.exception
        assert any("NOT being saved" in w.value for w in at.warning)

        at.run()
        assert any("NOT being saved" in w.value for w in at.warning)
        assert data_file.read_text(encoding="utf-8") == "[1, 2, 3]"

    def test_no_warning_with_working_storage(self, data_file):
        at = run_app()

        assert not at.exception
        assert not any("NOT being saved" in w.value for w in at.warning)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
