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
Converters for generating multi-arch manifest-tool specs from built images.
"""
from typing import Iterable, List, Optional, Sequence, Tuple

from jinja2 import Template

from ..MODELS.arch import Arch
from ..MODELS.distro import Distro, OSFamily, distro_supported_on
from ..MODELS.toolchain_version import OCamlVersion
from ..RECIPES.matrix_generator import cell_tag, tag_of_ocaml_version

MANIFEST_TEMPLATE = """image: {{ target }}
manifests:
{% for image, arch in platforms %}  - image: {{ image }}
    platform:
      architecture: {{ arch.manifest_arch }}
      os: {{ os }}
{% if arch == Arch.AARCH32 %}      variant: v7
{% endif %}{% endfor %}"""


def multiarch_manifest(target: str, platforms: Sequence[Tuple[str, Arch]], os: str = "linux") -> str:
    """
    Renders a manifest-tool YAML document.

    :param target: The multi-arch image name to push, e.g. ``ocaml/opam:debian-11``.
    :param platforms: ``(image, arch)`` pairs of the per-architecture images.
    :param os: Operating system field written for every platform.
    """
    template = Template(MANIFEST_TEMPLATE)
    return template.render(target=target, platforms=list(platforms), os=os, Arch=Arch)


def manifest_for(
    repo: str,
    distro: Distro,
    version: OCamlVersion,
    arches: Optional[Iterable[Arch]] = None,
) -> str:
    """
    The manifest joining every supported architecture of one distro/version.

    :raises ValueError: If no architecture supports the pair.
    """
    arches = list(arches) if arches is not None else list(Arch)
    platforms: List[Tuple[str, Arch]] = [
        (f"{repo}:{cell_tag(distro, arch, version)}", arch)
        for arch in arches
        if distro_supported_on(arch, version, distro)
    ]
    if not platforms:
        raise ValueError(f"No supported architecture for {distro.tag} with OCaml {version}")
    target = f"{repo}:{distro.tag}-ocaml-{tag_of_ocaml_version(version)}"
    os = "windows" if distro.os_family in (OSFamily.WINDOWS, OSFamily.CYGWIN) else "linux"
    return multiarch_manifest(target, platforms, os=os)
