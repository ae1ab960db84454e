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
The package-manager contract shared by every OS family.

Recipes only talk to ``PackageManager``; each family supplies its own
command syntax behind the same operations.
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from ..BUILDERS.dockerfile_builder import empty, run
from ..MODELS.dockerfile_ast import Dockerfile


class UserOptions(BaseModel):
    """
    Options for creating the unprivileged account.
    """
    model_config = ConfigDict(frozen=True)

    uid: Optional[int] = None
    gid: Optional[int] = None
    sudo: bool = False
    extra_packages: List[str] = []


class DistroQuirks(BaseModel):
    """
    Release-specific workarounds, decided once per distribution by the
    matrix generator and handed to the strategy.
    """
    model_config = ConfigDict(frozen=True)

    # rpm database needs rebuilding before installs (overlayfs on old yum)
    rebuild_package_db: bool = False
    # extra repository to enable after the development packages
    extra_repository: Optional[str] = None


class PackageManager(ABC):
    """
    Emits provisioning fragments in one OS family's native syntax.
    """

    style: str = ""
    build_packages: List[str] = []
    opam_prefix: str = "/usr/local"
    bubblewrap_from_source: bool = False
    strip_binaries: bool = False

    def __init__(self, quirks: Optional[DistroQuirks] = None):
        """
        :param quirks: Release-specific workarounds to apply.
        """
        self.quirks = quirks or DistroQuirks()

    def run(self, command: str) -> Dockerfile:
        """Executes a shell command the way this family needs."""
        return run(command)

    def host_path(self, path: str) -> str:
        """Maps an in-shell path to the path COPY sees."""
        return path

    def prepare(self) -> Dockerfile:
        """Steps that must precede the first install."""
        return empty()

    def configure_system(self) -> Dockerfile:
        """System tweaks applied once the baseline packages are installed."""
        return empty()

    @abstractmethod
    def update(self) -> Dockerfile:
        """Refreshes package indices."""

    @abstractmethod
    def install(self, packages: Sequence[str]) -> Dockerfile:
        """Installs packages, refreshing indices first where the family needs it."""

    @abstractmethod
    def add_user(self, username: str, options: Optional[UserOptions] = None) -> Dockerfile:
        """
        Creates an unprivileged account and switches to it.

        The account gets a locked password, a home directory as working
        directory and a ``~/.ssh`` directory with mode 700.
        """

    @abstractmethod
    def install_development_toolchain(self, extra_packages: Optional[Sequence[str]] = None) -> Dockerfile:
        """Installs compilers, build tools and the usual utilities."""

    @abstractmethod
    def install_system_toolchain(self) -> Dockerfile:
        """Installs the distribution's own OCaml compiler packages."""

    def _ssh_dir(self) -> Dockerfile:
        return self.run("mkdir .ssh") + self.run("chmod 700 .ssh")


def with_extra(packages: Sequence[str], extra: Optional[Sequence[str]]) -> List[str]:
    return list(packages) + list(extra or [])
