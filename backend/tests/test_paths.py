"""Tests for base path helpers."""

from estate_refresh.paths import base_path, is_absolute_url, resolve_path


def test_base_path_of_root_site() -> None:
    assert base_path("https://estate-index.vercel.app/") == "/"
    assert base_path("https://estate-index.vercel.app") == "/"


def test_base_path_of_subpath_site() -> None:
    assert base_path("https://example.com/properties/") == "/properties"
    assert base_path("https://example.com/a/b") == "/a/b"


def test_resolve_path_strips_slashes() -> None:
    assert resolve_path("https://estate-index.vercel.app/", "/listings/") == "/listings"
    assert resolve_path("https://example.com/site/", "css/main.css") == "/site/css/main.css"


def test_is_absolute_url() -> None:
    assert is_absolute_url("https://estate-index.vercel.app/")
    assert not is_absolute_url("/properties/")
    assert not is_absolute_url("estate-index.vercel.app")
