from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import replace
from pathlib import Path

from fluxtype.core.metaballs import MetaballField
from fluxtype.core.scene import CompositeRenderer, compose_frame
from fluxtype.core.settings import DEFAULT_SETTINGS, TypeSettings
from fluxtype.export.svg import FILTER_ID, SvgRenderer, export_svg, frame_to_svg

# `fluxtype.export.svg`（Frame → SVG 文書）をテストする。

_NS = {"svg": "http://www.w3.org/2000/svg"}
_CANVAS = (1200, 800)


def _svg(settings: TypeSettings, **kwargs) -> ET.Element:
    frame = compose_frame(settings, field=MetaballField(), clock_time=0.0)
    return ET.fromstring(frame_to_svg(frame, canvas_size=_CANVAS, **kwargs))


def _filter(root: ET.Element) -> ET.Element:
    node = root.find(f".//svg:filter[@id='{FILTER_ID}']", _NS)
    assert node is not None
    return node


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def test_minimal_solid_filter_has_four_primitives():
    settings = replace(DEFAULT_SETTINGS, num_metaballs=0)
    root = _svg(settings)

    assert root.get("viewBox") == "0 0 1200 800"
    children = [_local(c.tag) for c in _filter(root)]
    assert children == ["feTurbulence", "feDisplacementMap", "feGaussianBlur", "feColorMatrix"]
    assert root.findall(".//svg:circle", _NS) == []

    noise = _filter(root)[0]
    assert noise.get("baseFrequency") == "0.02 0.04"
    assert noise.get("numOctaves") == "2"
    assert noise.get("seed") == "1"

    displace = _filter(root)[1]
    assert displace.get("in") == "SourceGraphic"
    assert displace.get("in2") == "noise"
    assert displace.get("xChannelSelector") == "R"
    assert displace.get("yChannelSelector") == "G"


def test_text_lines_are_stacked_around_center():
    root = _svg(DEFAULT_SETTINGS)
    text = root.find(".//svg:text", _NS)
    assert text is not None
    assert text.get("font-family") == "'Syne'"
    assert text.get("fill") == "#FFFFFF"
    assert text.get("stroke") == "none"

    spans = text.findall("svg:tspan", _NS)
    assert [s.text for s in spans] == ["FLUX", "TYPE"]
    assert [s.get("dy") for s in spans] == ["-54", "108"]


def test_metaball_circles_use_percent_coordinates():
    root = _svg(replace(DEFAULT_SETTINGS, num_metaballs=3))
    circles = root.findall(".//svg:circle", _NS)
    assert len(circles) == 3
    for c in circles:
        assert c.get("cx", "").endswith("%")
        assert c.get("cy", "").endswith("%")
        assert c.get("fill") == "#FFFFFF"


def test_neon_merge_nodes_are_back_to_front():
    root = _svg(replace(DEFAULT_SETTINGS, texture_mode="neon"))
    merge = _filter(root).find("svg:feMerge", _NS)
    assert merge is not None
    assert merge.get("result") == "neon"
    nodes = [n.get("in") for n in merge.findall("svg:feMergeNode", _NS)]
    assert nodes == ["glow3", "glow2", "glow1", "gooShape", "gooShape"]


def test_chrome_specular_has_point_light():
    root = _svg(replace(DEFAULT_SETTINGS, texture_mode="chrome"))
    spec = _filter(root).find("svg:feSpecularLighting", _NS)
    assert spec is not None
    assert spec.get("in") == "bumpMap"
    assert spec.get("lighting-color") == "#ffffff"
    assert spec.get("specularExponent") == "30"
    light = spec.find("svg:fePointLight", _NS)
    assert light is not None
    assert (light.get("x"), light.get("y"), light.get("z")) == ("-5000", "-10000", "20000")


def test_morphology_is_emitted_only_with_radius():
    root = _svg(replace(DEFAULT_SETTINGS, morph_radius=3.0))
    morph = _filter(root).find("svg:feMorphology", _NS)
    assert morph is not None
    assert morph.get("operator") == "dilate"
    assert morph.get("radius") == "3"
    assert _filter(root).find("svg:feDisplacementMap", _NS).get("in") == "morphed"


def test_background_rect_is_optional():
    assert _svg(DEFAULT_SETTINGS).find("svg:rect", _NS) is None
    rect = _svg(DEFAULT_SETTINGS, include_background=True).find("svg:rect", _NS)
    assert rect is not None
    assert rect.get("fill") == "#000000"


def test_transform_pivots_on_canvas_center():
    root = _svg(replace(DEFAULT_SETTINGS, rotation=15.0, skew_x=-10.0))
    group = root.find(".//svg:g[@transform]", _NS)
    assert group is not None
    assert group.get("transform") == (
        "translate(600 400) rotate(15) skewX(-10) skewY(0) translate(-600 -400)"
    )


def test_export_svg_writes_file(tmp_path: Path):
    frame = compose_frame(DEFAULT_SETTINGS, field=MetaballField(), clock_time=0.0)
    out = export_svg(frame, tmp_path / "nested" / "out.svg", canvas_size=_CANVAS)
    assert out.is_file()
    text = out.read_text(encoding="utf-8")
    assert text.startswith('<?xml version="1.0" standalone="no"?>')
    assert text == SvgRenderer(canvas_size=_CANVAS).render(frame)


def test_svg_renderer_is_a_composite_renderer():
    renderer = SvgRenderer(canvas_size=_CANVAS, include_background=True)
    assert isinstance(renderer, CompositeRenderer)
    frame = compose_frame(DEFAULT_SETTINGS, field=MetaballField(), clock_time=0.0)
    assert renderer.render(frame) == frame_to_svg(frame, canvas_size=_CANVAS, include_background=True)
