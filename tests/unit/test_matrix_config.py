import pytest
from dockforge.MODELS.arch import Arch
from dockforge.MODELS.distro import ALL_DISTROS, Distro
from dockforge.MODELS.matrix_config import MatrixConfig
from dockforge.MODELS.toolchain_version import OCamlVersion, Releases


def test_defaults_cover_everything():
    config = MatrixConfig()
    assert config.distros == ALL_DISTROS
    assert config.arches == list(Arch)
    assert config.versions == Releases.recent_with_dev
    assert config.crunch is True


def test_from_yaml(tmp_path):
    path = tmp_path / "dockforge.yml"
    path.write_text(
        "distros: [debian-11, alpine-3.13]\n"
        "arches: [amd64]\n"
        "ocaml_versions: ['4.12.0']\n"
        "crunch: false\n"
    )
    config = MatrixConfig.from_yaml(str(path))
    assert config.distros == [Distro.DEBIAN_11, Distro.ALPINE_3_13]
    assert config.arches == [Arch.X86_64]
    assert config.versions == [OCamlVersion(4, 12, 0)]
    assert config.crunch is False
    assert config.repo == "ocaml/opam"


def test_from_empty_yaml(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("")
    assert MatrixConfig.from_yaml(str(path)) == MatrixConfig()


def test_missing_file():
    with pytest.raises(FileNotFoundError):
        MatrixConfig.from_yaml("does-not-exist.yml")


def test_invalid_values():
    with pytest.raises(ValueError):
        MatrixConfig(distros=["plan9"])
    with pytest.raises(ValueError):
        MatrixConfig(ocaml_versions=["not-a-version"])


def test_override():
    config = MatrixConfig().override(distros=[Distro.DEBIAN_11], ocaml_versions=["4.11.1"], crunch=False)
    assert config.distros == [Distro.DEBIAN_11]
    assert config.arches == list(Arch)
    assert config.ocaml_versions == ["4.11.1"]
    assert config.crunch is False
    assert MatrixConfig().override(distros=[]) == MatrixConfig()
