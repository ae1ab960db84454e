import pytest
from dockforge.MODELS.toolchain_version import OCamlVersion, Releases


def test_parse_release():
    version = OCamlVersion.parse("4.12.0")
    assert (version.major, version.minor, version.patch, version.extra) == (4, 12, 0, None)
    assert str(version) == "4.12.0"
    assert not version.is_dev


def test_parse_dev():
    version = OCamlVersion.parse("4.13.0+trunk")
    assert version.extra == "trunk"
    assert version.is_dev
    assert str(version) == "4.13.0+trunk"


def test_minor_zero_padded():
    assert str(OCamlVersion(4, 2, 3)) == "4.02.3"
    assert str(OCamlVersion(4, 14)) == "4.14"


def test_equality_ignores_separator():
    assert OCamlVersion.parse("4.13.0~trunk") == OCamlVersion.parse("4.13.0+trunk")
    assert hash(OCamlVersion.parse("4.13.0~trunk")) == hash(OCamlVersion.parse("4.13.0+trunk"))


@pytest.mark.parametrize("bad", ["", "four", "4", "4.x.1", "4.12.0+"])
def test_parse_rejects_garbage(bad):
    with pytest.raises(ValueError):
        OCamlVersion.parse(bad)


def test_at_least():
    assert OCamlVersion(4, 8, 1).at_least(4, 8)
    assert not OCamlVersion(4, 7, 1).at_least(4, 8)


def test_with_patch():
    assert OCamlVersion(4, 12).with_patch(1) == OCamlVersion(4, 12, 1)


def test_releases():
    assert Releases.latest == OCamlVersion(4, 12, 0)
    assert Releases.recent_with_dev[-1].is_dev
    assert all(not r.is_dev for r in Releases.recent)
    assert Releases.is_dev(OCamlVersion.parse("4.13.0+trunk"))
