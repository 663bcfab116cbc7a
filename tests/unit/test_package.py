"""Tests for the top-level package surface."""

from __future__ import annotations

import tfmirror


def test_exports_resolve():
    for name in tfmirror.__all__:
        assert hasattr(tfmirror, name), name


def test_only_version_metadata():
    assert tfmirror.__version__ == "0.1.0"
    assert not hasattr(tfmirror, "__description__")
