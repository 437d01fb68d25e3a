from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from dataclasses import replace
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from fluxtype.core.animation import AnimationClock
from fluxtype.core.runtime_config import set_config_path
from fluxtype.core.settings import DEFAULT_SETTINGS
from fluxtype.interactive.runtime.session import TypeSession

# `TypeSession`（スナップショット差し替え・提案適用・書き出し）をテストする。


@pytest.fixture(autouse=True)
def _reset_runtime_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    set_config_path(None)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    yield
    set_config_path(None)


class _Models:
    def __init__(self, *, text: str | None = None, exc: BaseException | None = None) -> None:
        self._text = text
        self._exc = exc
        self.calls: list[dict[str, Any]] = []

    async def generate_content(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if self._exc is not None:
            raise self._exc
        return SimpleNamespace(text=self._text)


def _client(models: _Models) -> Any:
    return SimpleNamespace(aio=SimpleNamespace(models=models))


class _FakeScheduler:
    def __init__(self) -> None:
        self.funcs: list[Any] = []

    def schedule_interval(self, func: Any, interval: float, *args: Any) -> None:
        self.funcs.append(func)

    def unschedule(self, func: Any) -> None:
        self.funcs.remove(func)


def test_defaults_come_from_runtime_config():
    session = TypeSession()
    assert session.settings == DEFAULT_SETTINGS
    assert session.canvas_size == (1200, 800)
    assert session.clock.time == 0.0


def test_update_swaps_snapshot():
    session = TypeSession()
    before = session.settings
    after = session.update({"textureMode": "glass"}, blur_std_dev=4)
    assert after is session.settings
    assert after.texture_mode == "glass"
    assert after.blur_std_dev == 4.0
    assert before.texture_mode == "solid"


def test_update_rejects_invalid_patch_and_keeps_snapshot():
    session = TypeSession()
    with pytest.raises(ValueError):
        session.update({"contrast": 5.0, "textureMode": "velvet"})
    assert session.settings == DEFAULT_SETTINGS


def test_failed_suggestion_leaves_settings_unchanged():
    session = TypeSession(replace(DEFAULT_SETTINGS, texture_mode="chrome"))
    before = session.settings
    models = _Models(exc=ConnectionError("network down"))

    result = session.apply_suggestion("make it glow", client=_client(models))

    assert not result.ok
    assert "network down" in (result.error or "")
    assert session.settings is before
    assert len(models.calls) == 1


def test_successful_suggestion_is_applied():
    session = TypeSession()
    payload = {
        "fontFamily": "Righteous",
        "distortionStrength": 60,
        "blurStdDev": 8,
        "contrast": 25,
        "textureMode": "neon",
        "text": "HACKED",
    }
    models = _Models(text=json.dumps(payload))

    result = session.apply_suggestion("neon lava", client=_client(models))

    assert result.ok
    assert "text" in result.dropped
    s = session.settings
    assert s.texture_mode == "neon"
    assert s.blur_std_dev == 8.0
    assert s.text == DEFAULT_SETTINGS.text


def test_tick_advances_only_when_animating():
    session = TypeSession(replace(DEFAULT_SETTINGS, metaball_speed=0.0))
    assert session.tick() == 0.0
    session.update(metaball_speed=1.0)
    assert session.tick() == pytest.approx(0.01)


def test_start_animation_follows_updates():
    scheduler = _FakeScheduler()
    session = TypeSession(clock=AnimationClock())
    ticker = session.start_animation(scheduler=scheduler, fps=30.0)
    assert ticker.subscribed
    assert len(scheduler.funcs) == 1

    session.update(num_metaballs=0)
    assert not ticker.subscribed
    assert scheduler.funcs == []

    session.update(num_metaballs=2)
    assert ticker.subscribed

    session.close()
    assert session.ticker is None
    assert scheduler.funcs == []


def test_frame_uses_clock_time():
    session = TypeSession(clock=AnimationClock(t0=2.5))
    frame = session.frame()
    assert frame.clock_time == 2.5
    assert len(frame.circles) == DEFAULT_SETTINGS.num_metaballs


def test_save_svg_default_and_explicit_path(tmp_path: Path):
    session = TypeSession()
    path = session.save_svg()
    assert path is not None
    assert path.parts[:3] == ("data", "output", "svg")
    assert path.name.startswith("flux-type-source-")
    assert path.read_text(encoding="utf-8") == session.render_svg()

    explicit = session.save_svg(tmp_path / "x" / "y.svg")
    assert explicit == tmp_path / "x" / "y.svg"
    assert explicit.is_file()


def test_xml_illegal_text_is_rejected_and_saved_svg_parses(tmp_path: Path):
    session = TypeSession()
    with pytest.raises(ValueError):
        session.update(text="FLUX\x0bTYPE")
    assert session.settings.text == DEFAULT_SETTINGS.text

    path = session.save_svg(tmp_path / "ok.svg")
    assert path is not None
    ET.parse(path)
