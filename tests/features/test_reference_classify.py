from __future__ import annotations

import pytest

from mrc_backend.features.references import classify_reference, extract_asset_id, is_remote_url


@pytest.mark.parametrize(
    "value, expected",
    [
        ("https://res.cloudinary.com/demo/image/upload/v1/looklyn/p/a.jpg", "remote"),
        ("data:image/png;base64,iVBORw0KGgo=", "inline"),
        ("A" * 1200, "inline"),
        ("/uploads/products/a.jpg", "local"),
        ("products/a.jpg", "local"),
        ("https://example.com/a.jpg", "external"),
        ("", None),
        ("   ", None),
        (None, None),
        (42, None),
    ],
)
def test_classify_reference(value, expected):
    assert classify_reference(value) == expected


def test_long_store_url_is_remote_not_inline():
    url = "https://res.cloudinary.com/demo/image/upload/v1/looklyn/p/a.jpg?_a=" + "b" * 2000
    assert classify_reference(url) == "remote"
    assert extract_asset_id(url) == "looklyn/p/a"


def test_inline_threshold_is_exclusive():
    assert classify_reference("x" * 1000) == "local"
    assert classify_reference("x" * 1001) == "inline"
    assert classify_reference("data:image/png;base64,cloudinary.com") == "inline"


def test_custom_marker_and_threshold():
    assert classify_reference("https://cdn.example.net/a.png", delivery_marker="cdn.example.net") == "remote"
    assert classify_reference("x" * 80, inline_min_length=64) == "inline"


def test_extract_asset_id_handles_versioned_and_unversioned_urls():
    assert extract_asset_id("https://res.cloudinary.com/demo/image/upload/v1712/looklyn/products/a_1.jpg") == (
        "looklyn/products/a_1"
    )
    assert extract_asset_id("https://res.cloudinary.com/demo/image/upload/looklyn/slideshow/s_1_0.webp") == (
        "looklyn/slideshow/s_1_0"
    )
    assert extract_asset_id("https://res.cloudinary.com/demo/image/upload/v3/looklyn/raw") == "looklyn/raw"


def test_extract_asset_id_returns_none_for_other_shapes():
    assert extract_asset_id("https://res.cloudinary.com/demo/image/fetch/abc.jpg") is None
    assert extract_asset_id("") is None
    assert extract_asset_id(None) is None


def test_is_remote_url():
    assert is_remote_url("https://res.cloudinary.com/x")
    assert not is_remote_url("https://example.com/x")
    assert not is_remote_url(None)
