"""
Processor architectures the image matrix is built for.
"""
from enum import Enum
from typing import Optional


class Arch(str, Enum):
    """
    Architectures, valued by the suffix used in image tags.
    """
    X86_64 = "amd64"
    I386 = "i386"
    AARCH64 = "arm64"
    AARCH32 = "arm32v7"
    PPC64LE = "ppc64le"
    S390X = "s390x"

    @property
    def is_32bit_emulated(self) -> bool:
        """True for 32-bit userlands usually run on a 64-bit kernel."""
        return self in (Arch.I386, Arch.AARCH32)

    @property
    def docker_platform(self) -> Optional[str]:
        """The ``--platform`` value needed to pull the right base image, if any."""
        return _DOCKER_PLATFORMS.get(self)

    @property
    def manifest_arch(self) -> str:
        """Architecture name as written in a multi-arch manifest."""
        return _MANIFEST_ARCHES[self]


_DOCKER_PLATFORMS = {
    Arch.I386: "linux/386",
    Arch.AARCH32: "linux/arm/v7",
}

_MANIFEST_ARCHES = {
    Arch.X86_64: "amd64",
    Arch.I386: "386",
    Arch.AARCH64: "arm64",
    Arch.AARCH32: "arm",
    Arch.PPC64LE: "ppc64le",
    Arch.S390X: "s390x",
}
