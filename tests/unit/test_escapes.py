"""Test TeX and HTML escape handling."""

import pytest

from latex_text.escapes import replace_escapes, unescape_html


@pytest.mark.parametrize("source, expected", [
    ("\\&", "&"),
    ("\\%", "%"),
    ("\\$", "$"),
    ("\\#", "#"),
    ("\\_", "_"),
    ("\\{", "{"),
    ("\\}", "}"),
    ("\\~", "~"),
    ("\\^", "^"),
    ("\\\\", "\\"),
])
def test_replace_single_escape(source, expected):
    assert replace_escapes(source) == expected


def test_replace_all_escapes():
    assert replace_escapes("\\&\\%\\$\\#\\_\\{\\}\\~\\^\\\\") == "&%$#_{}~^\\"


def test_replace_is_single_pass():
    assert replace_escapes("\\\\$") == "\\$"


def test_other_backslashes_are_kept():
    assert replace_escapes("\\alpha and \\n") == "\\alpha and \\n"


def test_unescape_html():
    assert unescape_html("&lt;b&gt; &amp; &#36;x&#36;") == "<b> & $x$"
