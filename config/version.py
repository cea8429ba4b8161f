"""Project version and interpreter compatibility metadata."""

from __future__ import annotations

from pathlib import Path
from typing import Final, Tuple

MIN_PYTHON_VERSION: Final[Tuple[int, int]] = (3, 10)
MIN_PYTHON_VERSION_STR: Final[str] = ".".join(str(part) for part in MIN_PYTHON_VERSION)
PYTHON_REQUIRES_SPECIFIER: Final[str] = f">={MIN_PYTHON_VERSION_STR}"


class VersionMetadata:
    """Read-only semantic version triple."""

    __slots__ = ("major", "minor", "patch")

    def __init__(self, major: int, minor: int, patch: int) -> None:
        for attribute_name, value in (
            ("major", major),
            ("minor", minor),
            ("patch", patch),
        ):
            if value < 0:
                raise ValueError(f"{attribute_name} must be non-negative, got {value}")
            object.__setattr__(self, attribute_name, value)

    def __setattr__(self, name: str, value: object) -> None:  # pragma: no cover
        raise AttributeError("VersionMetadata instances are read-only")

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    @classmethod
    def parse(cls, text: str) -> "VersionMetadata":
        parts = text.strip().split(".")
        if len(parts) != 3:
            raise ValueError(f"VERSION must look like MAJOR.MINOR.PATCH, got {text!r}")
        return cls(*(int(part) for part in parts))


_VERSION_FILE = Path(__file__).resolve().parent.parent / "VERSION"
PROJECT_VERSION: Final[str] = _VERSION_FILE.read_text(encoding="utf-8").strip()
VERSION_INFO: Final[VersionMetadata] = VersionMetadata.parse(PROJECT_VERSION)
__version__: Final[str] = PROJECT_VERSION

__all__ = [
    "MIN_PYTHON_VERSION",
    "MIN_PYTHON_VERSION_STR",
    "PYTHON_REQUIRES_SPECIFIER",
    "PROJECT_VERSION",
    "VERSION_INFO",
    "__version__",
    "VersionMetadata",
]
