import json

import pytest

from snapshot.config import CaptureConfig, TargetRegistry
from snapshot.errors import ConfigurationError
from snapshot.utils import Deadline, load_json_config, parse_viewport


def test_defaults_match_dashboard_capture():
    cfg = CaptureConfig.from_sources(environ={})
    assert (cfg.viewport_width, cfg.viewport_height, cfg.device_scale_factor) == (1440, 900, 4.0)
    assert cfg.slice_max_height == 4000
    assert cfg.stable_steps >= 5 and cfg.stable_polls >= 3


def test_cli_beats_json_beats_env():
    env = {"SNAPSHOT_SLICE_MAX_HEIGHT": "1000", "SNAPSHOT_SETTLE_MS": "250", "SNAPSHOT_HEADLESS": "off"}
    cfg = CaptureConfig.from_sources(
        {"slice_max_height": 2000, "scroll_step_px": 400},
        environ=env,
        overrides={"slice_max_height": 3000, "device_scale_factor": None},
    )
    assert cfg.slice_max_height == 3000
    assert cfg.scroll_step_px == 400
    assert cfg.settle_ms == 250
    assert cfg.headless is False
    assert cfg.device_scale_factor == 4.0


@pytest.mark.parametrize(
    "cfg",
    [{"slice_max_height": 0}, {"viewport_width": -1}, {"wait_until": "networkidle2"}, {"settle_ms": "soon"}],
)
def test_bad_values_are_configuration_errors(cfg):
    with pytest.raises(ConfigurationError):
        CaptureConfig.from_sources(cfg, environ={})


def test_registry_lookup_by_key_or_display_name(tmp_path):
    path = tmp_path / "targets.json"
    path.write_text(json.dumps({
        "vm14": {"name": "VM 14.0", "urls": ["https://example.com/a", "https://example.com/b"]},
        "Blaze 1.0": ["https://example.com/c"],
    }), encoding="utf-8")
    registry = TargetRegistry.load(str(path))

    assert registry.get("vm14") is registry.get("VM 14.0")
    assert registry.get("vm14").urls == ("https://example.com/a", "https://example.com/b")
    assert registry.get("Blaze 1.0").name == "Blaze 1.0"
    assert registry.describe() == ["vm14 (VM 14.0)", "Blaze 1.0"]
    with pytest.raises(ConfigurationError):
        registry.get("VM 15.0")


@pytest.mark.parametrize(
    "data",
    [{"x": {"name": "X", "urls": []}}, {"x": ["ftp://example.com"]}, {"x": "https://example.com"}],
)
def test_registry_rejects_bad_entries(data):
    with pytest.raises(ConfigurationError):
        TargetRegistry.from_dict(data)


def test_missing_files_are_configuration_errors(tmp_path):
    with pytest.raises(ConfigurationError):
        TargetRegistry.load(str(tmp_path / "nope.json"))
    with pytest.raises(ConfigurationError):
        load_json_config(str(tmp_path / "nope.json"))
    assert load_json_config(None) == {}


def test_parse_viewport():
    assert parse_viewport("1280x800") == (1280, 800)
    assert parse_viewport("wide") is None


def test_deadline_clamps_waits():
    now = [10.0]
    d = Deadline(2.0, clock=lambda: now[0])
    assert d.clamp_ms(5000) == 2000
    now[0] = 11.5
    assert d.clamp_ms(5000) == 500
    assert not d.expired()
    now[0] = 12.0
    assert d.expired() and d.clamp_ms(100) == 0
    assert Deadline(None).clamp_ms(100) == 100
