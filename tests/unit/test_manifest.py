import pytest
import yaml
from dockforge.CONVERTERS.manifest import manifest_for, multiarch_manifest
from dockforge.MODELS.arch import Arch
from dockforge.MODELS.distro import Distro
from dockforge.MODELS.toolchain_version import OCamlVersion


def test_multiarch_manifest_structure():
    text = multiarch_manifest(
        "ocaml/opam:debian-11",
        [("ocaml/opam:debian-11-amd64", Arch.X86_64), ("ocaml/opam:debian-11-arm32v7", Arch.AARCH32)],
    )
    data = yaml.safe_load(text)
    assert data["image"] == "ocaml/opam:debian-11"
    assert len(data["manifests"]) == 2
    assert data["manifests"][0]["platform"] == {"architecture": "amd64", "os": "linux"}
    assert data["manifests"][1]["platform"] == {"architecture": "arm", "os": "linux", "variant": "v7"}


def test_manifest_for_only_supported_arches():
    text = manifest_for("ocaml/opam", Distro.FEDORA_34, OCamlVersion.parse("4.12.0"))
    data = yaml.safe_load(text)
    assert data["image"] == "ocaml/opam:fedora-34-ocaml-4.12.0"
    arches = [m["platform"]["architecture"] for m in data["manifests"]]
    assert arches == ["amd64", "arm64", "ppc64le", "s390x"]
    assert data["manifests"][0]["image"] == "ocaml/opam:fedora-34-ocaml-4.12.0-amd64"


def test_manifest_for_windows_os():
    data = yaml.safe_load(manifest_for("ocaml/opam", Distro.WINDOWS_MSVC_LTSC2019, OCamlVersion.parse("4.12.0")))
    assert data["manifests"][0]["platform"]["os"] == "windows"


def test_manifest_for_nothing_supported():
    with pytest.raises(ValueError):
        manifest_for("ocaml/opam", Distro.ARCHLINUX, OCamlVersion.parse("4.12.0"), [Arch.S390X])
