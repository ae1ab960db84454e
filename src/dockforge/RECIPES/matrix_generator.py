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
Expands opam recipes over distributions, architectures and compiler versions.

Each supported (distro, arch, version) cell yields a two-stage Dockerfile:
the first stage builds opam (and bubblewrap where the distribution's package
is too old) from source, the second starts again from a clean base image and
copies only the resulting binaries across.

``all_compilers`` builds the same two stages per (distro, arch) but with one
opam switch per supported compiler in a single image.
"""
import logging
import re
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..BUILDERS.dockerfile_builder import cmd, cmd_exec, concat, copy, empty, entrypoint_exec, env, label
from ..BUILDERS.linux import git_init
from ..MANAGERS.apk import ApkPackageManager
from ..MANAGERS.apt import AptPackageManager
from ..MANAGERS.cygwin import CygwinPackageManager
from ..MANAGERS.package_manager import DistroQuirks, PackageManager, UserOptions
from ..MANAGERS.pacman import PacmanPackageManager
from ..MANAGERS.rpm import RpmPackageManager
from ..MANAGERS.zypper import ZypperPackageManager
from ..MODELS.arch import Arch
from ..MODELS.distro import (
    ALL_DISTROS,
    Distro,
    OSFamily,
    PackageManagerKind,
    WindowsPort,
    distro_supported_on,
    opam_repository,
    personality,
)
from ..MODELS.dockerfile_ast import Dockerfile
from ..MODELS.toolchain_version import OCamlVersion, Releases
from ..OPTIMIZERS.crunch import crunch as crunch_dockerfile
from .opam_fragments import (
    OPAM_REPO_DIR,
    add_beta_remote,
    build_ocaml_from_source,
    build_windows_ocaml,
    create_switch,
    header,
    install_bubblewrap_from_source,
    install_bubblewrap_wrappers,
    install_depext,
    install_opam_from_source,
    opam_init,
    stage,
)

logger = logging.getLogger(__name__)

SupportPredicate = Callable[[Arch, OCamlVersion, Distro], bool]

OPAM_USER = "opam"
OPAM_USER_OPTIONS = UserOptions(uid=1000, gid=1000, sudo=True)

# (branch built in the first stage, name installed in the final image)
OPAM_BRANCHES = [("2.0", "opam-2.0"), ("master", "opam-2.1")]
DEFAULT_OPAM = "opam-2.0"

_STRATEGIES = {
    PackageManagerKind.APT: AptPackageManager,
    PackageManagerKind.RPM: RpmPackageManager,
    PackageManagerKind.APK: ApkPackageManager,
    PackageManagerKind.ZYPPER: ZypperPackageManager,
    PackageManagerKind.PACMAN: PacmanPackageManager,
    PackageManagerKind.CYGWIN: CygwinPackageManager,
}

_EXTRA_REPOSITORIES = {
    Distro.CENTOS_8: "powertools",
    Distro.ORACLELINUX_8: "ol8_codeready_builder",
}

_WINDOWS_PORT_PACKAGES = {
    WindowsPort.MINGW: ["mingw64-x86_64-gcc-core", "mingw64-x86_64-gcc-g++"],
    WindowsPort.MSVC: [],
}

_TAG_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")


def quirks_for(distro: Distro) -> DistroQuirks:
    """Computes the release-specific workarounds for a distribution."""
    return DistroQuirks(
        rebuild_package_db=distro in (Distro.CENTOS_7, Distro.ORACLELINUX_7),
        extra_repository=_EXTRA_REPOSITORIES.get(distro),
    )


def package_manager_for(distro: Distro, quirks: Optional[DistroQuirks] = None) -> PackageManager:
    """Selects the strategy for a distribution's package manager."""
    strategy = _STRATEGIES[distro.package_manager]
    return strategy(quirks if quirks is not None else quirks_for(distro))


def tag_of_ocaml_version(version: OCamlVersion) -> str:
    return _TAG_UNSAFE.sub("-", str(version))


def cell_tag(distro: Distro, arch: Arch, version: OCamlVersion) -> str:
    """
    The image tag for one matrix cell, e.g. ``debian-11-ocaml-4.12.0-amd64``.

    Characters not allowed in image tags (``+``, ``~``...) become ``-``.
    """
    return _TAG_UNSAFE.sub("-", f"{distro.tag}-ocaml-{version}-{arch.value}")


def uses_builtin_compiler(distro: Distro, version: OCamlVersion) -> bool:
    """True when the distribution already ships exactly the requested compiler."""
    builtin = distro.builtin_ocaml
    return builtin is not None and builtin == version


def _dev_extra_packages(distro: Distro) -> List[str]:
    if distro.os_family == OSFamily.WINDOWS and distro.windows_port is not None:
        return _WINDOWS_PORT_PACKAGES[distro.windows_port]
    return []


def _opam_build_stage(distro: Distro, arch: Arch, pm: PackageManager, comments: List[str]) -> Dockerfile:
    """The throwaway stage that compiles opam (and bubblewrap)."""
    fragment = concat(
        header(distro, arch, comments=comments),
        pm.prepare(),
        pm.install(pm.build_packages),
        git_init(runner=pm.run),
        install_bubblewrap_from_source(pm) if pm.bubblewrap_from_source else empty(),
    )
    for branch, _ in OPAM_BRANCHES:
        fragment = fragment + install_opam_from_source(
            pm,
            branch=branch,
            add_default_link=False,
            enable_0install_solver=(branch == "master"),
        )
    if pm.strip_binaries:
        fragment = fragment + pm.run(f"strip {pm.opam_prefix}/bin/opam*")
    return fragment


def _copy_binaries(pm: PackageManager) -> Dockerfile:
    copies = []
    if pm.bubblewrap_from_source:
        copies.append(copy([pm.host_path("/usr/local/bin/bwrap")], pm.host_path("/usr/bin/bwrap"), from_stage=0))
    for branch, name in OPAM_BRANCHES:
        copies.append(
            copy([pm.host_path(f"{pm.opam_prefix}/bin/opam-{branch}")], pm.host_path(f"/usr/bin/{name}"), from_stage=0)
        )
    return concat(*copies) + pm.run(f"ln /usr/bin/{DEFAULT_OPAM} /usr/bin/opam")


def _toolchain(distro: Distro, pm: PackageManager, version: OCamlVersion) -> Tuple[Dockerfile, Dockerfile]:
    """
    Decides where the compiler comes from.

    :return: (fragment run as root before the user exists,
              fragment run after ``opam init`` that creates the switch)
    """
    if uses_builtin_compiler(distro, version):
        return pm.install_system_toolchain(), pm.run(f"opam switch create {version} ocaml-system")
    if distro.os_family == OSFamily.WINDOWS:
        return empty(), build_windows_ocaml(pm, distro, version)
    if distro.os_family == OSFamily.CYGWIN:
        # /usr/local/bin is already on the Cygwin login PATH
        source = build_ocaml_from_source(pm, version, prefix="/usr/local", update_path=False)
    else:
        source = build_ocaml_from_source(pm, version)
    return source, pm.run(f"opam switch create {version} ocaml-system")


def _final_stage(
    distro: Distro,
    arch: Arch,
    pm: PackageManager,
    labels: List[Tuple[str, str]],
    root_toolchain: Dockerfile,
    switches: Dockerfile,
) -> Dockerfile:
    """
    The image users run: opam binaries from stage 0, the ``opam`` user and
    an initialised opam root.

    ``switches`` runs right after ``opam init`` and must leave a default
    switch selected.
    """
    family = distro.os_family
    pers = personality(family, arch)
    linux = family == OSFamily.LINUX
    return concat(
        stage(distro, arch),
        label([("distro_style", pm.style), ("distro", distro.tag), ("arch", arch.value)] + labels),
        pm.prepare(),
        pm.install_development_toolchain(_dev_extra_packages(distro)),
        _copy_binaries(pm),
        pm.configure_system(),
        root_toolchain,
        pm.add_user(OPAM_USER, OPAM_USER_OPTIONS),
        install_bubblewrap_wrappers(pm) if linux else empty(),
        git_init(runner=pm.run),
        pm.run(f"git clone {opam_repository(family)} {OPAM_REPO_DIR}"),
        pm.run("opam-sandbox-disable") if linux else empty(),
        opam_init(pm, family),
        switches,
        install_depext(pm, family),
        env([("OPAMYES", "1")]),
        entrypoint_exec(([pers] if pers else []) + ["opam", "exec", "--"]),
        cmd_exec(["cmd.exe"]) if family == OSFamily.WINDOWS else cmd("bash"),
    )


def generate(distro: Distro, arch: Arch, version: OCamlVersion, crunch: bool = False) -> Tuple[str, Dockerfile]:
    """
    Builds the Dockerfile for a single matrix cell.

    The caller is responsible for only asking for supported cells; see
    ``generate_matrix`` for the filtered bulk form.

    Args:
        distro: Target distribution.
        arch: Target architecture.
        version: Requested compiler version.
        crunch: Compact RUN layers before returning.

    Returns:
        (tag, Dockerfile) for the cell.
    """
    tag = cell_tag(distro, arch, version)
    logger.debug("Generating %s", tag)
    pm = package_manager_for(distro, quirks_for(distro))
    if uses_builtin_compiler(distro, version):
        provenance = "system OCaml compiler"
    else:
        provenance = f"local switch of OCaml {version}"
    comments = [f"OPAM for {distro.tag} with {provenance}"]
    root_toolchain, switch = _toolchain(distro, pm, version)
    if version.is_dev:
        switch = add_beta_remote(pm) + switch
    final = _final_stage(distro, arch, pm, [("ocaml_version", str(version))], root_toolchain, switch)
    dockerfile = _opam_build_stage(distro, arch, pm, comments) + final
    if crunch:
        dockerfile = crunch_dockerfile(dockerfile)
    return tag, dockerfile


def supported_cells(
    distros: Iterable[Distro],
    arches: Iterable[Arch],
    versions: Iterable[OCamlVersion],
    is_supported: SupportPredicate = distro_supported_on,
) -> List[Tuple[Distro, Arch, OCamlVersion]]:
    """Lists the cells of the product space accepted by ``is_supported``."""
    arches = list(arches)
    versions = list(versions)
    return [
        (distro, arch, version)
        for distro in distros
        for arch in arches
        for version in versions
        if is_supported(arch, version, distro)
    ]


def generate_matrix(
    distros: Optional[Iterable[Distro]] = None,
    arches: Optional[Iterable[Arch]] = None,
    versions: Optional[Iterable[OCamlVersion]] = None,
    is_supported: SupportPredicate = distro_supported_on,
    crunch: bool = False,
) -> Dict[str, Dockerfile]:
    """
    Builds every supported cell of the matrix.

    :param distros: Distributions, defaults to all known ones.
    :param arches: Architectures, defaults to all known ones.
    :param versions: Compiler versions, defaults to recent releases plus trunk.
    :param is_supported: Predicate filtering cells before any generation.
    :param crunch: Compact RUN layers in every Dockerfile.
    :return: Dockerfiles keyed by cell tag, in iteration order.
    :raises ValueError: If two cells map to the same tag.
    """
    distros = list(distros) if distros is not None else ALL_DISTROS
    arches = list(arches) if arches is not None else list(Arch)
    versions = list(versions) if versions is not None else Releases.recent_with_dev

    cells = supported_cells(distros, arches, versions, is_supported)
    total = len(distros) * len(arches) * len(versions)
    logger.info("Generating %d of %d matrix cells (%d unsupported)", len(cells), total, total - len(cells))

    matrix: Dict[str, Dockerfile] = {}
    for distro, arch, version in cells:
        tag, dockerfile = generate(distro, arch, version, crunch=crunch)
        if tag in matrix:
            raise ValueError(f"Duplicate image tag in matrix: {tag}")
        matrix[tag] = dockerfile
    return matrix


def all_compilers_tag(distro: Distro, arch: Arch) -> str:
    return _TAG_UNSAFE.sub("-", f"{distro.tag}-{arch.value}")


def all_compilers(
    distro: Distro,
    arch: Arch,
    versions: Optional[Iterable[OCamlVersion]] = None,
    is_supported: SupportPredicate = distro_supported_on,
    crunch: bool = False,
) -> Tuple[str, Dockerfile]:
    """
    Builds one image holding a switch for every supported compiler version.

    Every switch is built by opam. The newest release is selected as the
    default switch, or the newest development snapshot when no release is
    supported.

    :raises ValueError: If no version is supported on (distro, arch).
    """
    candidates = list(versions) if versions is not None else Releases.recent_with_dev
    supported = [version for version in candidates if is_supported(arch, version, distro)]
    if not supported:
        raise ValueError(f"No supported compiler for {distro.value} on {arch.value}")
    releases = [version for version in supported if not version.is_dev]
    default = (releases or supported)[-1]

    tag = all_compilers_tag(distro, arch)
    logger.debug("Generating %s with %d switches", tag, len(supported))
    pm = package_manager_for(distro, quirks_for(distro))
    switches = add_beta_remote(pm) if any(version.is_dev for version in supported) else empty()
    for version in supported:
        switches = switches + create_switch(pm, distro, version)
    switches = switches + pm.run(f"opam switch {default}")
    labels = [("ocaml_versions", " ".join(str(version) for version in supported))]

    comments = [f"OPAM for {distro.tag} with all supported OCaml compilers"]
    dockerfile = _opam_build_stage(distro, arch, pm, comments) + _final_stage(
        distro, arch, pm, labels, empty(), switches
    )
    if crunch:
        dockerfile = crunch_dockerfile(dockerfile)
    return tag, dockerfile


def generate_all_compilers_matrix(
    distros: Optional[Iterable[Distro]] = None,
    arches: Optional[Iterable[Arch]] = None,
    versions: Optional[Iterable[OCamlVersion]] = None,
    is_supported: SupportPredicate = distro_supported_on,
    crunch: bool = False,
) -> Dict[str, Dockerfile]:
    """Builds one multi-compiler image per (distro, arch) with at least one supported version."""
    distros = list(distros) if distros is not None else ALL_DISTROS
    arches = list(arches) if arches is not None else list(Arch)
    versions = list(versions) if versions is not None else Releases.recent_with_dev

    matrix: Dict[str, Dockerfile] = {}
    for distro in distros:
        for arch in arches:
            if not any(is_supported(arch, version, distro) for version in versions):
                logger.debug("Skipping %s on %s: no supported compiler", distro.value, arch.value)
                continue
            tag, dockerfile = all_compilers(distro, arch, versions, is_supported, crunch=crunch)
            if tag in matrix:
                raise ValueError(f"Duplicate image tag in matrix: {tag}")
            matrix[tag] = dockerfile
    logger.info("Generated %d multi-compiler images", len(matrix))
    return matrix
