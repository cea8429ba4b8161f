"""Ensure version and Python compatibility metadata stay in sync across the project."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import src
from config.version import (
    MIN_PYTHON_VERSION,
    PROJECT_VERSION,
    PYTHON_REQUIRES_SPECIFIER,
    VERSION_INFO,
    VersionMetadata,
)


def test_python_version_single_source_of_truth() -> None:
    assert src.__package_info__["python_requires"] == PYTHON_REQUIRES_SPECIFIER
    assert sys.version_info[:2] >= MIN_PYTHON_VERSION

    setup_text = (ROOT_DIR / "setup.py").read_text(encoding="utf-8")
    assert "PYTHON_REQUIRES_SPECIFIER" in setup_text
    assert "PROJECT_VERSION" in setup_text


def test_version_file_is_semantic() -> None:
    assert (ROOT_DIR / "VERSION").read_text(encoding="utf-8").strip() == PROJECT_VERSION
    assert str(VERSION_INFO) == PROJECT_VERSION
    assert src.__version__ == PROJECT_VERSION


@pytest.mark.parametrize("text", ["1.2", "1.2.3.4", "a.b.c", "1.-2.0"])
def test_version_metadata_rejects_malformed_text(text: str) -> None:
    with pytest.raises(ValueError):
        VersionMetadata.parse(text)
