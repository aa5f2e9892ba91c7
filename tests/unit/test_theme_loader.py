"""Test theme loader functionality."""

import pytest
from latex_text.theme_loader import get_css, list_available_themes, validate_theme


def test_get_css_default():
    """Test that default theme loads and returns CSS content."""
    css = get_css("default")

    assert isinstance(css, str)
    assert ".latex-equation-block" in css
    assert "font-family" in css


def test_get_css_dark():
    """Test that dark theme loads with its own colours."""
    css = get_css("dark")

    assert ".latex-error" in css
    assert "#1a1a1a" in css  # Dark background color


def test_get_css_invalid_theme():
    """Test that invalid theme names raise appropriate errors."""
    # Non-existent theme
    with pytest.raises(FileNotFoundError):
        get_css("nonexistent")

    # Invalid characters (path traversal attempt)
    with pytest.raises(ValueError):
        get_css("../evil")

    with pytest.raises(ValueError):
        get_css("theme/../../evil")


def test_list_available_themes():
    """Test that list_available_themes returns expected themes."""
    themes = list_available_themes()

    assert "default" in themes
    assert "dark" in themes
    assert themes == sorted(themes)


def test_validate_theme():
    """Test theme validation function."""
    assert validate_theme("default") is True
    assert validate_theme("dark") is True
    assert validate_theme("nonexistent") is False
    assert validate_theme("../evil") is False
