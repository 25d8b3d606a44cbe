# tests/test_env_loader.py

from __future__ import annotations

from pathlib import Path

import pytest

from env.loader import DEFAULT_CONFIG_PATH, load_config


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "companion.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_shipped_config_loads_with_defaults():
    config = load_config(DEFAULT_CONFIG_PATH, environ={})

    assert config.game.bot_name == "Alex"
    assert config.game.target_player is None
    assert config.dashboard.port == 3000
    assert config.model.model_path is None
    assert config.model.enabled is False
    assert config.behavior.tick_interval_s == 0.8
    assert config.behavior.threat_radius == 7.0
    assert config.behavior.resource_radius == 6.0
    assert config.behavior.follow_threshold == 4.0
    assert config.behavior.mining_deadline_s == 8.0
    assert config.logging.event_log == "logs/events.jsonl"


def test_partial_file_falls_back_to_defaults(tmp_path: Path):
    path = _write(tmp_path, "game:\n  bot_name: Scout\nbehavior:\n  chatter_probability: 0.5\n")

    config = load_config(path, environ={})

    assert config.game.bot_name == "Scout"
    assert config.game.port == 25565
    assert config.behavior.chatter_probability == 0.5
    assert config.behavior.reaction_probability == 0.45


def test_environment_overrides(tmp_path: Path):
    path = _write(tmp_path, "game:\n  host: example.org\n")

    config = load_config(
        path,
        environ={"MC_HOST": "mc.local", "MC_PORT": "25570", "TARGET_PLAYER": "Steve", "PORT": "8080",
                 "MODEL_PATH": "/models/tiny.gguf"},
    )

    assert config.game.host == "mc.local"
    assert config.game.port == 25570
    assert config.game.target_player == "Steve"
    assert config.dashboard.port == 8080
    assert config.model.enabled is True


def test_config_path_from_environment(tmp_path: Path):
    path = _write(tmp_path, "game:\n  bot_name: FromEnv\n")

    config = load_config(environ={"COMPANION_CONFIG": str(path)})

    assert config.game.bot_name == "FromEnv"


def test_bad_override_value_is_reported(tmp_path: Path):
    path = _write(tmp_path, "{}\n")
    with pytest.raises(ValueError, match="MC_PORT"):
        load_config(path, environ={"MC_PORT": "lots"})


def test_unknown_key_is_rejected(tmp_path: Path):
    path = _write(tmp_path, "behavior:\n  threat_raduis: 9\n")
    with pytest.raises(ValueError, match="threat_raduis"):
        load_config(path, environ={})


def test_missing_file_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml", environ={})


def test_non_mapping_top_level_raises(tmp_path: Path):
    path = _write(tmp_path, "- just\n- a list\n")
    with pytest.raises(ValueError):
        load_config(path, environ={})


@pytest.mark.parametrize(
    "body",
    [
        "behavior:\n  reaction_probability: 1.5\n",
        "behavior:\n  tick_interval_s: 0\n",
        "behavior:\n  reply_delay_min_s: 3.0\n",
        "behavior:\n  resource_radius: 9.0\n",
    ],
)
def test_invalid_tuning_values_are_rejected(tmp_path: Path, body: str):
    with pytest.raises(ValueError):
        load_config(_write(tmp_path, body), environ={})
