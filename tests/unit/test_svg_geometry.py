"""Test SVG geometry parsing."""

import pytest

from latex_text.models import SVGGeometry, to_points
from latex_text.svg import (
    MissingGeometryError,
    MissingSVGElementError,
    SVGParsingError,
    parse_ex,
    parse_geometry,
    parse_view_box,
)

MATHJAX_SVG = (
    '<svg style="vertical-align: -1.602ex;" xmlns="http://www.w3.org/2000/svg" '
    'width="2.127ex" height="4.638ex" role="img" focusable="false" '
    'viewBox="0 -1342 940 2050"><g stroke="currentColor"></g></svg>'
)


def test_parse_mathjax_svg():
    geometry = parse_geometry(MATHJAX_SVG)
    assert geometry == SVGGeometry(
        vertical_alignment=-1.602,
        width=2.127,
        height=4.638,
        frame=(0.0, -1342.0, 940.0, 2050.0),
    )


def test_only_root_svg_is_inspected():
    markup = MATHJAX_SVG.replace('<g stroke="currentColor"></g>', '<svg width="9ex"></svg>')
    assert parse_geometry(markup).width == pytest.approx(2.127)


def test_missing_svg_element():
    with pytest.raises(MissingSVGElementError):
        parse_geometry("<div>nothing here</div>")


@pytest.mark.parametrize("attribute", ['style="vertical-align: -1.602ex;"', 'width="2.127ex"', 'viewBox="0 -1342 940 2050"'])
def test_missing_geometry_attribute(attribute):
    markup = MATHJAX_SVG.replace(attribute, "")
    with pytest.raises(MissingGeometryError):
        parse_geometry(markup)


def test_geometry_errors_are_value_errors():
    with pytest.raises(ValueError):
        parse_geometry("")
    assert issubclass(MissingGeometryError, SVGParsingError)


@pytest.mark.parametrize("value, expected", [
    ("2.127ex", 2.127),
    ("-0.5ex", -0.5),
    (" 3ex ", 3.0),
    ("12", 12.0),
    ("wide", None),
])
def test_parse_ex(value, expected):
    assert parse_ex(value) == expected


def test_parse_view_box_rejects_short_boxes():
    assert parse_view_box("0 0 10") is None
    assert parse_view_box("0 0 a b") is None
    assert parse_view_box("0 -10 20 30") == (0.0, -10.0, 20.0, 30.0)


def test_size_in_points():
    geometry = parse_geometry(MATHJAX_SVG)
    width, height = geometry.size_in_points(10.0)
    assert width == pytest.approx(21.27)
    assert height == pytest.approx(46.38)
    assert to_points(-1.602, 10.0) == pytest.approx(-16.02)


def test_geometry_dict_round_trip():
    geometry = parse_geometry(MATHJAX_SVG)
    data = geometry.to_dict()
    assert set(data) == {"verticalAlignment", "width", "height", "frame"}
    assert SVGGeometry.from_dict(data) == geometry
