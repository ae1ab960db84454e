# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Distributions known to the image matrix and the facts derived from them:
OS family, package manager, base image, shipped compiler and architecture
support.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from .arch import Arch
from .toolchain_version import OCamlVersion


class OSFamily(str, Enum):
    LINUX = "linux"
    WINDOWS = "windows"
    CYGWIN = "cygwin"


class PackageManagerKind(str, Enum):
    APT = "apt"
    RPM = "rpm"
    APK = "apk"
    ZYPPER = "zypper"
    PACMAN = "pacman"
    CYGWIN = "cygwin"


class WindowsPort(str, Enum):
    MINGW = "mingw"
    MSVC = "msvc"


class Distro(str, Enum):
    """
    A distribution release, valued by its canonical tag.
    """
    ALPINE_3_12 = "alpine-3.12"
    ALPINE_3_13 = "alpine-3.13"
    ARCHLINUX = "archlinux"
    CENTOS_7 = "centos-7"
    CENTOS_8 = "centos-8"
    DEBIAN_10 = "debian-10"
    DEBIAN_11 = "debian-11"
    DEBIAN_TESTING = "debian-testing"
    DEBIAN_UNSTABLE = "debian-unstable"
    FEDORA_33 = "fedora-33"
    FEDORA_34 = "fedora-34"
    OPENSUSE_15_2 = "opensuse-15.2"
    OPENSUSE_15_3 = "opensuse-15.3"
    ORACLELINUX_7 = "oraclelinux-7"
    ORACLELINUX_8 = "oraclelinux-8"
    UBUNTU_18_04 = "ubuntu-18.04"
    UBUNTU_20_04 = "ubuntu-20.04"
    UBUNTU_21_04 = "ubuntu-21.04"
    CYGWIN_LTSC2019 = "cygwin-ltsc2019"
    WINDOWS_MINGW_LTSC2019 = "windows-mingw-ltsc2019"
    WINDOWS_MSVC_LTSC2019 = "windows-msvc-ltsc2019"

    @property
    def tag(self) -> str:
        return self.value

    @property
    def name_prefix(self) -> str:
        """The distribution name without its release, e.g. ``debian``."""
        return _INFO[self].name

    @property
    def os_family(self) -> OSFamily:
        return _INFO[self].family

    @property
    def package_manager(self) -> PackageManagerKind:
        return _INFO[self].package_manager

    @property
    def builtin_ocaml(self) -> Optional[OCamlVersion]:
        """The compiler version the distribution ships, if known."""
        version = _INFO[self].builtin_ocaml
        return OCamlVersion.parse(version) if version else None

    @property
    def windows_port(self) -> Optional[WindowsPort]:
        return _INFO[self].windows_port


@dataclass(frozen=True)
class _DistroInfo:
    name: str
    image: str
    image_tag: str
    family: OSFamily
    package_manager: PackageManagerKind
    builtin_ocaml: Optional[str] = None
    windows_port: Optional[WindowsPort] = None


_SERVERCORE = "mcr.microsoft.com/windows/servercore"

_INFO: Dict[Distro, _DistroInfo] = {
    Distro.ALPINE_3_12: _DistroInfo("alpine", "alpine", "3.12", OSFamily.LINUX, PackageManagerKind.APK, "4.08.1"),
    Distro.ALPINE_3_13: _DistroInfo("alpine", "alpine", "3.13", OSFamily.LINUX, PackageManagerKind.APK, "4.08.1"),
    Distro.ARCHLINUX: _DistroInfo("archlinux", "archlinux", "latest", OSFamily.LINUX, PackageManagerKind.PACMAN),
    Distro.CENTOS_7: _DistroInfo("centos", "centos", "7", OSFamily.LINUX, PackageManagerKind.RPM),
    Distro.CENTOS_8: _DistroInfo("centos", "centos", "8", OSFamily.LINUX, PackageManagerKind.RPM),
    Distro.DEBIAN_10: _DistroInfo("debian", "debian", "10", OSFamily.LINUX, PackageManagerKind.APT, "4.05.0"),
    Distro.DEBIAN_11: _DistroInfo("debian", "debian", "11", OSFamily.LINUX, PackageManagerKind.APT, "4.11.1"),
    Distro.DEBIAN_TESTING: _DistroInfo("debian", "debian", "testing", OSFamily.LINUX, PackageManagerKind.APT),
    Distro.DEBIAN_UNSTABLE: _DistroInfo("debian", "debian", "unstable", OSFamily.LINUX, PackageManagerKind.APT),
    Distro.FEDORA_33: _DistroInfo("fedora", "fedora", "33", OSFamily.LINUX, PackageManagerKind.RPM, "4.11.1"),
    Distro.FEDORA_34: _DistroInfo("fedora", "fedora", "34", OSFamily.LINUX, PackageManagerKind.RPM, "4.11.1"),
    Distro.OPENSUSE_15_2: _DistroInfo("opensuse", "opensuse/leap", "15.2", OSFamily.LINUX, PackageManagerKind.ZYPPER, "4.05.0"),
    Distro.OPENSUSE_15_3: _DistroInfo("opensuse", "opensuse/leap", "15.3", OSFamily.LINUX, PackageManagerKind.ZYPPER, "4.05.0"),
    Distro.ORACLELINUX_7: _DistroInfo("oraclelinux", "oraclelinux", "7", OSFamily.LINUX, PackageManagerKind.RPM),
    Distro.ORACLELINUX_8: _DistroInfo("oraclelinux", "oraclelinux", "8", OSFamily.LINUX, PackageManagerKind.RPM),
    Distro.UBUNTU_18_04: _DistroInfo("ubuntu", "ubuntu", "18.04", OSFamily.LINUX, PackageManagerKind.APT, "4.05.0"),
    Distro.UBUNTU_20_04: _DistroInfo("ubuntu", "ubuntu", "20.04", OSFamily.LINUX, PackageManagerKind.APT, "4.08.1"),
    Distro.UBUNTU_21_04: _DistroInfo("ubuntu", "ubuntu", "21.04", OSFamily.LINUX, PackageManagerKind.APT, "4.11.1"),
    Distro.CYGWIN_LTSC2019: _DistroInfo("cygwin", _SERVERCORE, "ltsc2019", OSFamily.CYGWIN, PackageManagerKind.CYGWIN),
    Distro.WINDOWS_MINGW_LTSC2019: _DistroInfo(
        "windows", _SERVERCORE, "ltsc2019", OSFamily.WINDOWS, PackageManagerKind.CYGWIN, windows_port=WindowsPort.MINGW
    ),
    Distro.WINDOWS_MSVC_LTSC2019: _DistroInfo(
        "windows", _SERVERCORE, "ltsc2019", OSFamily.WINDOWS, PackageManagerKind.CYGWIN, windows_port=WindowsPort.MSVC
    ),
}

OPAM_REPOSITORIES = {
    OSFamily.LINUX: "https://github.com/ocaml/opam-repository.git",
    OSFamily.WINDOWS: "https://github.com/fdopen/opam-repository-mingw.git",
    OSFamily.CYGWIN: "https://github.com/fdopen/opam-repository-mingw.git",
}

# Architectures each distribution publishes base images for, beyond amd64.
_EXTRA_ARCHES = {
    "debian": {Arch.I386, Arch.AARCH32, Arch.AARCH64, Arch.PPC64LE, Arch.S390X},
    "ubuntu": {Arch.I386, Arch.AARCH32, Arch.AARCH64, Arch.PPC64LE, Arch.S390X},
    "alpine": {Arch.I386, Arch.AARCH32, Arch.AARCH64},
    "fedora": {Arch.AARCH64, Arch.PPC64LE, Arch.S390X},
}

# Oldest compiler with a native backend on each architecture.
_MIN_ARCH_VERSION = {
    Arch.AARCH64: (4, 5),
    Arch.PPC64LE: (4, 6),
    Arch.S390X: (4, 8),
}

ALL_DISTROS = list(Distro)
LATEST_DISTROS = [
    Distro.ALPINE_3_13,
    Distro.ARCHLINUX,
    Distro.CENTOS_8,
    Distro.DEBIAN_11,
    Distro.FEDORA_34,
    Distro.OPENSUSE_15_3,
    Distro.ORACLELINUX_8,
    Distro.UBUNTU_21_04,
]


def base_distro_tag(distro: Distro) -> Tuple[str, str]:
    """
    Returns the base image name and tag for a distribution.

    :param distro: The distribution.
    :return: (image, tag), e.g. ("debian", "11").
    """
    info = _INFO[distro]
    return info.image, info.image_tag


def opam_repository(family: OSFamily) -> str:
    return OPAM_REPOSITORIES[family]


def personality(family: OSFamily, arch: Arch) -> Optional[str]:
    """
    Returns the command that switches the process personality so a 32-bit
    userland sees a 32-bit ``uname``, or None when no switch is needed.
    """
    if family == OSFamily.LINUX and arch.is_32bit_emulated:
        return "/usr/bin/linux32"
    return None


def arch_supported(arch: Arch, distro: Distro) -> bool:
    if distro.os_family != OSFamily.LINUX:
        return arch == Arch.X86_64
    if arch == Arch.X86_64:
        return True
    if distro == Distro.CENTOS_8 and arch in (Arch.AARCH64, Arch.PPC64LE):
        return True
    return arch in _EXTRA_ARCHES.get(distro.name_prefix, set())


def distro_supported_on(arch: Arch, version: OCamlVersion, distro: Distro) -> bool:
    """
    Decides whether an image for this (architecture, compiler, distribution)
    cell should exist at all.
    """
    if not arch_supported(arch, distro):
        return False
    if version.is_dev and arch != Arch.X86_64:
        return False
    if distro.os_family == OSFamily.WINDOWS and not version.at_least(4, 6):
        return False
    if distro.name_prefix == "alpine" and not version.at_least(4, 3):
        return False
    minimum = _MIN_ARCH_VERSION.get(arch)
    if minimum and not version.at_least(*minimum):
        return False
    return True
