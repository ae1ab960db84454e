"""
OCaml compiler versions and the release set the image matrix iterates over.
"""
import re
from dataclasses import dataclass
from typing import List, Optional

_VERSION_RE = re.compile(
    r"^(?P<major>\d+)\.(?P<minor>\d+)(?:\.(?P<patch>\d+))?(?:(?P<sep>[+~])(?P<extra>.+))?$"
)


@dataclass(frozen=True)
class OCamlVersion:
    """
    A compiler version such as ``4.12.0`` or ``4.13.0+trunk``.

    Equality covers the numeric parts and the ``extra`` suffix, not the
    separator in front of it.
    """

    major: int
    minor: int
    patch: Optional[int] = None
    extra: Optional[str] = None
    separator: str = "+"

    @classmethod
    def parse(cls, value: str) -> "OCamlVersion":
        """
        Parse a version string.

        Raises:
            ValueError: If the string is not a version.
        """
        match = _VERSION_RE.match(value.strip())
        if not match:
            raise ValueError(f"Invalid OCaml version: {value!r}")
        patch = match.group("patch")
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(patch) if patch is not None else None,
            extra=match.group("extra"),
            separator=match.group("sep") or "+",
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, OCamlVersion):
            return NotImplemented
        return (self.major, self.minor, self.patch, self.extra) == (
            other.major,
            other.minor,
            other.patch,
            other.extra,
        )

    def __hash__(self) -> int:
        return hash((self.major, self.minor, self.patch, self.extra))

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor:02d}"
        if self.patch is not None:
            text += f".{self.patch}"
        if self.extra:
            text += f"{self.separator}{self.extra}"
        return text

    @property
    def is_dev(self) -> bool:
        """Development snapshots carry a suffix (``+trunk``, ``~alpha1``...)."""
        return self.extra is not None

    def with_patch(self, patch: Optional[int]) -> "OCamlVersion":
        return OCamlVersion(self.major, self.minor, patch, self.extra, self.separator)

    def at_least(self, major: int, minor: int) -> bool:
        return (self.major, self.minor) >= (major, minor)


def _parse_all(values: List[str]) -> List[OCamlVersion]:
    return [OCamlVersion.parse(v) for v in values]


class Releases:
    """The known compiler releases, oldest first."""

    recent = _parse_all([
        "4.02.3",
        "4.03.0",
        "4.04.2",
        "4.05.0",
        "4.06.1",
        "4.07.1",
        "4.08.1",
        "4.09.1",
        "4.10.2",
        "4.11.1",
        "4.12.0",
    ])
    dev = _parse_all(["4.13.0+trunk"])
    recent_with_dev = recent + dev
    latest = recent[-1]

    @staticmethod
    def is_dev(version: OCamlVersion) -> bool:
        return version.is_dev
