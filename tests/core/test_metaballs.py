"""core.metaballs（アンカー導出とアニメーション位置）をテスト。"""

from __future__ import annotations

import math
from dataclasses import replace

import numpy as np
import pytest

from fluxtype.core.metaballs import (
    JITTER_AMPLITUDE,
    MetaballField,
    animated_position,
    animated_positions,
    derive_anchors,
)
from fluxtype.core.rng import pseudo_random
from fluxtype.core.settings import DEFAULT_SETTINGS


def test_zero_metaballs_yields_no_anchors() -> None:
    assert derive_anchors(0, 40.0, 1) == ()
    assert derive_anchors(0, 0.0, 99) == ()


def test_derive_anchors_is_idempotent() -> None:
    a = derive_anchors(7, 55.0, 3)
    b = derive_anchors(7, 55.0, 3)
    assert a == b
    assert [anchor.index for anchor in a] == list(range(7))


def test_anchors_stay_within_spread_bounds() -> None:
    anchors = derive_anchors(5, 40.0, 1)
    assert len(anchors) == 5
    for anchor in anchors:
        assert 30.0 <= anchor.base_x <= 70.0
        assert 30.0 <= anchor.base_y <= 70.0
        assert 20.0 <= anchor.radius <= 80.0
        assert 0.0 <= anchor.phase < 2.0 * math.pi
        assert 0.5 <= anchor.speed_factor <= 1.0


def test_anchor_draws_use_four_seed_offsets() -> None:
    seed = 2
    i = 3
    anchor = derive_anchors(5, 40.0, seed)[i]

    assert anchor.base_x == pytest.approx(50.0 + (pseudo_random(seed * 100 + i) - 0.5) * 40.0)
    assert anchor.base_y == pytest.approx(50.0 + (pseudo_random(seed * 200 + i) - 0.5) * 40.0)
    assert anchor.radius == pytest.approx(20.0 + pseudo_random(seed * 300 + i) * 60.0)
    assert anchor.phase == pytest.approx(pseudo_random(seed * 400 + i) * 2.0 * math.pi)
    # 速度係数は 1 本目の draw を再利用する。
    assert anchor.speed_factor == pytest.approx(0.5 + pseudo_random(seed * 100 + i) * 0.5)


def test_growing_count_keeps_existing_prefix() -> None:
    small = derive_anchors(3, 40.0, 1)
    large = derive_anchors(6, 40.0, 1)
    assert large[:3] == small


def test_animated_position_orbits_anchor() -> None:
    anchor = derive_anchors(1, 40.0, 1)[0]
    t = 3.7
    x, y = animated_position(anchor, t)
    angle = t * anchor.speed_factor + anchor.phase
    assert x == pytest.approx(anchor.base_x + math.sin(angle) * JITTER_AMPLITUDE)
    assert y == pytest.approx(anchor.base_y + math.cos(angle) * JITTER_AMPLITUDE)
    assert math.hypot(x - anchor.base_x, y - anchor.base_y) == pytest.approx(JITTER_AMPLITUDE)


def test_animated_positions_matches_scalar_version() -> None:
    anchors = derive_anchors(4, 80.0, 9)
    out = animated_positions(anchors, 1.25)
    assert out.shape == (4, 2)
    for anchor, row in zip(anchors, out):
        assert tuple(row) == pytest.approx(animated_position(anchor, 1.25))

    empty = animated_positions((), 1.0)
    assert empty.shape == (0, 2)


def test_field_regenerates_only_when_key_changes() -> None:
    field = MetaballField()
    s1 = replace(DEFAULT_SETTINGS, num_metaballs=4, metaball_spread=30.0, noise_seed=2)
    first = field.anchors_for(s1)
    # 色など無関係なフィールドの変更ではキャッシュを使う。
    assert field.anchors_for(replace(s1, fill_color="#00FF00")) is first

    shrunk = field.anchors_for(replace(s1, num_metaballs=2))
    assert len(shrunk) == 2
    assert shrunk == derive_anchors(2, 30.0, 2)


def test_field_positions_are_frozen_when_speed_is_zero() -> None:
    field = MetaballField()
    settings = replace(DEFAULT_SETTINGS, num_metaballs=5, metaball_speed=0.0)
    anchors = field.anchors_for(settings)
    base = np.array([(a.base_x, a.base_y) for a in anchors])

    for t in (0.0, 1.0, 123.4):
        assert np.array_equal(field.positions(settings, t), base)
