"""Unit tests for settings presets."""

import pytest

from kglearner.config import Environment, Settings, get_settings


class TestSettings:
    """Tests for Settings."""

    def test_layout_defaults(self) -> None:
        settings = Settings()
        assert settings.link_distance == 120.0
        assert settings.charge_strength == -400.0
        assert settings.collide_radius == 50.0
        assert (settings.zoom_min, settings.zoom_max) == (0.1, 4.0)

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LLM_MODEL", "llama3")
        monkeypatch.setenv("LINK_DISTANCE", "80")
        settings = Settings()
        assert settings.llm_model == "llama3"
        assert settings.link_distance == 80.0

    def test_presets(self) -> None:
        assert get_settings(Environment.TEST).frame_interval == 0.0
        assert get_settings("test").llm_model == "test-model"
        assert get_settings().api_debug is True
