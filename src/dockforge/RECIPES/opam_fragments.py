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
Reusable fragments for opam images: headers, building opam, bubblewrap and
the OCaml compiler from source, and the sandbox toggling scripts.
"""
from typing import List, Optional

from ..BUILDERS.dockerfile_builder import (
    comment,
    concat,
    empty,
    env,
    escape,
    from_,
    maintainer as maintainer_,
    shell,
)
from ..MANAGERS.package_manager import PackageManager
from ..MODELS.arch import Arch
from ..MODELS.distro import Distro, OSFamily, WindowsPort, base_distro_tag, personality
from ..MODELS.dockerfile_ast import Dockerfile
from ..MODELS.toolchain_version import OCamlVersion

AUTOGENERATED = "Autogenerated by dockforge"
BUBBLEWRAP_RELEASE = "0.4.1"
OCAML_PREFIX_ROOT = "/opt/ocaml"
OPAM_REPO_DIR = "/home/opam/opam-repository"
BETA_REPOSITORY = "git://github.com/ocaml/ocaml-beta-repository"

WINDOWS_SHELL = ["cmd", "/S", "/C"]


def source_build_marker(version: OCamlVersion) -> str:
    """The comment that opens every compiler-from-source fragment."""
    return f"Build OCaml {version} from source"


def shell_directive(distro: Distro, arch: Optional[Arch]) -> Dockerfile:
    """
    The SHELL override a stage needs: a personality switch for 32-bit
    userlands, ``cmd`` for Windows, nothing otherwise.
    """
    family = distro.os_family
    if family in (OSFamily.WINDOWS, OSFamily.CYGWIN):
        return shell(WINDOWS_SHELL)
    pers = personality(family, arch) if arch else None
    if pers:
        return shell([pers, "/bin/sh", "-c"])
    return empty()


def stage(distro: Distro, arch: Optional[Arch] = None, img: Optional[str] = None, tag: Optional[str] = None) -> Dockerfile:
    """Opens a new build stage on the distribution's base image."""
    dimg, dtag = base_distro_tag(distro)
    platform = arch.docker_platform if arch else None
    return from_(img or dimg, tag=tag or dtag, platform=platform) + shell_directive(distro, arch)


def header(
    distro: Distro,
    arch: Optional[Arch] = None,
    maintainer: Optional[str] = None,
    img: Optional[str] = None,
    tag: Optional[str] = None,
    comments: Optional[List[str]] = None,
) -> Dockerfile:
    """
    The opening lines of a generated Dockerfile.

    :param distro: Distribution whose base image is used unless ``img`` is given.
    :param arch: Target architecture; selects the platform and personality.
    :param maintainer: Optional MAINTAINER line.
    :param img: Overrides the base image name.
    :param tag: Overrides the base image tag.
    :param comments: Extra comment lines after the autogenerated banner.
    """
    escape_directive = (
        escape("`") if distro.os_family in (OSFamily.WINDOWS, OSFamily.CYGWIN) else empty()
    )
    dimg, dtag = base_distro_tag(distro)
    platform = arch.docker_platform if arch else None
    return concat(
        escape_directive,
        comment(AUTOGENERATED),
        concat(*[comment(c) for c in comments or []]),
        from_(img or dimg, tag=tag or dtag, platform=platform),
        maintainer_(maintainer) if maintainer else empty(),
        shell_directive(distro, arch),
    )


def install_opam_from_source(
    pm: PackageManager,
    branch: str,
    prefix: Optional[str] = None,
    add_default_link: bool = True,
    enable_0install_solver: bool = False,
) -> Dockerfile:
    """
    Clones and builds opam, installing it as ``<prefix>/bin/opam-<branch>``.

    :param pm: Strategy used to run the shell commands.
    :param branch: opam git branch to build.
    :param prefix: Install prefix, defaults to the strategy's opam prefix.
    :param add_default_link: Also link the binary as plain ``opam``.
    :param enable_0install_solver: Vendor the 0install solver into the build.
    """
    prefix = prefix or pm.opam_prefix
    fragment = pm.run(f"git clone -b {branch} https://github.com/ocaml/opam /tmp/opam")
    if enable_0install_solver:
        fragment = concat(
            fragment,
            pm.run("git clone https://github.com/ocaml-opam/opam-0install-solver /tmp/opam/opam-0install-solver"),
            pm.run("git clone https://github.com/0install/0install /tmp/opam/0install"),
        )
    fragment = fragment + pm.run(
        f"cd /tmp/opam && make cold && mkdir -p {prefix}/bin"
        f" && cp /tmp/opam/opam {prefix}/bin/opam-{branch}"
        f" && chmod a+x {prefix}/bin/opam-{branch} && rm -rf /tmp/opam"
    )
    if add_default_link:
        fragment = fragment + pm.run(f"ln {prefix}/bin/opam-{branch} {prefix}/bin/opam")
    return fragment


def install_bubblewrap_from_source(pm: PackageManager, prefix: str = "/usr/local") -> Dockerfile:
    rel = BUBBLEWRAP_RELEASE
    archive = f"bubblewrap-{rel}.tar.xz"
    url = f"https://github.com/projectatomic/bubblewrap/releases/download/v{rel}/{archive}"
    return concat(
        pm.run(f"curl -fOL {url}"),
        pm.run(f"tar xf {archive}"),
        pm.run(f"cd bubblewrap-{rel} && ./configure --prefix={prefix} && make && make install"),
        pm.run(f"rm -rf {archive} bubblewrap-{rel}"),
    )


def install_bubblewrap_wrappers(pm: PackageManager) -> Dockerfile:
    """Installs ``opam-sandbox-enable``/``opam-sandbox-disable`` helper scripts."""
    lines = [
        "echo 'wrap-build-commands: []' > ~/.opamrc-nosandbox",
        "echo 'wrap-install-commands: []' >> ~/.opamrc-nosandbox",
        "echo 'wrap-remove-commands: []' >> ~/.opamrc-nosandbox",
        "echo 'required-tools: []' >> ~/.opamrc-nosandbox",
        "echo '#!/bin/sh' > /home/opam/opam-sandbox-disable",
        "echo 'cp ~/.opamrc-nosandbox ~/.opamrc' >> /home/opam/opam-sandbox-disable",
        "echo 'echo --- opam sandboxing disabled' >> /home/opam/opam-sandbox-disable",
        "chmod a+x /home/opam/opam-sandbox-disable",
        "sudo mv /home/opam/opam-sandbox-disable /usr/bin/opam-sandbox-disable",
        "echo 'wrap-build-commands: [\"%{hooks}%/sandbox.sh\" \"build\"]' > ~/.opamrc-sandbox",
        "echo 'wrap-install-commands: [\"%{hooks}%/sandbox.sh\" \"install\"]' >> ~/.opamrc-sandbox",
        "echo 'wrap-remove-commands: [\"%{hooks}%/sandbox.sh\" \"remove\"]' >> ~/.opamrc-sandbox",
        "echo '#!/bin/sh' > /home/opam/opam-sandbox-enable",
        "echo 'cp ~/.opamrc-sandbox ~/.opamrc' >> /home/opam/opam-sandbox-enable",
        "echo 'echo --- opam sandboxing enabled' >> /home/opam/opam-sandbox-enable",
        "chmod a+x /home/opam/opam-sandbox-enable",
        "sudo mv /home/opam/opam-sandbox-enable /usr/bin/opam-sandbox-enable",
    ]
    return concat(*[pm.run(line) for line in lines])


def ocaml_prefix(version: OCamlVersion) -> str:
    return f"{OCAML_PREFIX_ROOT}/{version}"


def build_ocaml_from_source(
    pm: PackageManager, version: OCamlVersion, prefix: Optional[str] = None, update_path: bool = True
) -> Dockerfile:
    """
    Fetches, builds and installs a compiler into a private prefix and puts
    it first on PATH.

    Compilers before 4.08 use the hand-written ``configure`` which only
    understands ``-prefix``. Development versions are built from trunk.
    """
    prefix = prefix or ocaml_prefix(version)
    ref = "trunk" if version.is_dev else str(version)
    archive = f"/tmp/ocaml-{ref}.tar.gz"
    srcdir = f"/tmp/ocaml-{ref}"
    prefix_flag = "--prefix" if version.at_least(4, 8) else "-prefix"
    return concat(
        comment(source_build_marker(version)),
        pm.run(f"curl -fSL -o {archive} https://github.com/ocaml/ocaml/archive/{ref}.tar.gz"),
        pm.run(f"tar -C /tmp -xzf {archive}"),
        pm.run(
            f"cd {srcdir} && ./configure {prefix_flag} {prefix}"
            f" && make world.opt && make install && rm -rf {srcdir} {archive}"
        ),
        env([("PATH", f"{prefix}/bin:$PATH")]) if update_path else empty(),
    )


def windows_port(distro: Distro) -> WindowsPort:
    """
    The native Windows port of a Windows distribution.

    Raises:
        ValueError: If ``distro`` is not a native Windows distribution; that
            means a recipe was dispatched to the wrong family.
    """
    port = distro.windows_port
    if distro.os_family != OSFamily.WINDOWS or port is None:
        raise ValueError(f"Invalid distribution for a Windows port: {distro.value}")
    return port


def windows_variant_package(version: OCamlVersion, port: WindowsPort) -> str:
    suffix = {WindowsPort.MINGW: "mingw64c", WindowsPort.MSVC: "msvc64"}[port]
    return f"ocaml-variants.{version}+{suffix}"


def build_windows_ocaml(pm: PackageManager, distro: Distro, version: OCamlVersion) -> Dockerfile:
    """Builds the Windows port of the compiler as an opam switch."""
    package = windows_variant_package(version, windows_port(distro))
    return comment(source_build_marker(version)) + pm.run(f"opam switch create {version} {package}")


def opam_init(pm: PackageManager, family: OSFamily) -> Dockerfile:
    sandbox_flag = " --disable-sandboxing" if family != OSFamily.LINUX else ""
    return pm.run(f"opam init -k git -a {OPAM_REPO_DIR} --bare{sandbox_flag}")


def add_beta_remote(pm: PackageManager) -> Dockerfile:
    """Makes the beta repository the default remote, for pre-release compilers."""
    return pm.run(f"opam repo add beta {BETA_REPOSITORY} --set-default")


def install_depext(pm: PackageManager, family: OSFamily) -> Dockerfile:
    packages = "depext depext-cygwinports" if family == OSFamily.WINDOWS else "depext"
    return pm.run(f"opam install -y {packages}")


def opam_compiler_package(version: OCamlVersion) -> str:
    if version.is_dev:
        return f"ocaml-variants.{version}"
    return f"ocaml-base-compiler.{version}"


def create_switch(pm: PackageManager, distro: Distro, version: OCamlVersion) -> Dockerfile:
    """Creates an opam switch that builds ``version`` from the opam repository."""
    if distro.os_family == OSFamily.WINDOWS:
        return build_windows_ocaml(pm, distro, version)
    return pm.run(f"opam switch create {version} {opam_compiler_package(version)}")
