"""Tests for settings loading and logging setup."""

from pathlib import Path

import pytest
import structlog
from pydantic import ValidationError

from werewolf_host.config import DEFAULT_STANDIN_NAMES, PacingConfig, ServerSettings, load_settings
from werewolf_host.engine import GameServer
from werewolf_host.logs import configure_logging
from werewolf_host.events import NightStep
from werewolf_host.models import Role

from helpers import ManualTimers, open_room, started_steps


class TestLoadSettings:
    """Tests for load_settings."""

    def test_defaults_without_a_file(self) -> None:
        settings = load_settings()
        assert settings.pacing == PacingConfig()
        assert settings.pacing.announce_delay == 3.0
        assert settings.pacing.inter_phase_delay == 2.0
        assert settings.standin_names == DEFAULT_STANDIN_NAMES
        assert settings.room_id_length == 6

    def test_missing_file_falls_back_to_defaults(self, tmp_path: Path) -> None:
        assert load_settings(tmp_path / "absent.yaml") == ServerSettings()

    def test_empty_file_is_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("")
        assert load_settings(path) == ServerSettings()

    def test_yaml_overrides(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text(
            "pacing:\n"
            "  announce_delay: 0.5\n"
            "  synthetic_delay: 1\n"
            "room_id_length: 8\n"
            "standin_names: [Robo One, Robo Two]\n"
            "log_level: DEBUG\n"
        )

        settings = load_settings(str(path))

        assert settings.pacing.announce_delay == 0.5
        assert settings.pacing.synthetic_delay == 1.0
        assert settings.pacing.reveal_delay == 3.0
        assert settings.room_id_length == 8
        assert settings.standin_names == ("Robo One", "Robo Two")
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize("body", [
        "unknown_key: 1\n",
        "pacing:\n  announce_delay: -1\n",
        "pacing:\n  typo_delay: 1\n",
    ])
    def test_invalid_settings_raise(self, tmp_path: Path, body: str) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text(body)
        with pytest.raises(ValidationError):
            load_settings(path)


class TestSettingsInServer:
    """Tests that settings reach the engine."""

    def test_custom_pacing_and_names(self, timers: ManualTimers) -> None:
        settings = ServerSettings(
            pacing=PacingConfig(announce_delay=1.0),
            standin_names=("Robo",),
            room_id_length=4,
        )
        server = GameServer(settings=settings, timers=timers)
        room = open_room(server, [Role.VILLAGER, Role.WEREWOLF, Role.VILLAGER], ["host"])
        assert len(room.room_id) == 4

        server.start_game("host", room.room_id)
        timers.advance(1.0)

        assert started_steps(server.outbox)[-1] == NightStep.WEREWOLF
        names = [room.participants[p].name for p in (f"standin-{room.room_id}-2", f"standin-{room.room_id}-3")]
        assert names == ["Robo", "Bot 3"]

    def test_default_language_fills_config(self, server: GameServer) -> None:
        server.configure_room("host", {"total_seats": 3})
        room_id = server.create_room("host").data["room_id"]
        assert server.registry.get(room_id).config.language == "en"


class TestConfigureLogging:

    @pytest.mark.parametrize("level", ["DEBUG", "info", "bogus"])
    def test_configure_logging_accepts_any_level(self, level: str) -> None:
        configure_logging(level)
        structlog.get_logger("test").info("logging.configured", level=level)
        structlog.reset_defaults()
