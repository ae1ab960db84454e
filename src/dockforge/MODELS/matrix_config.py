"""
Configuration for which part of the image matrix to build.
"""
import os
from typing import List, Optional

import yaml
from pydantic import BaseModel, field_validator

from .arch import Arch
from .distro import ALL_DISTROS, Distro
from .toolchain_version import OCamlVersion, Releases


class MatrixConfig(BaseModel):
    """
    Selection of distributions, architectures and compiler versions.

    Equivalent to a parsed ``dockforge.yml``::

        distros: [debian-11, alpine-3.13]
        arches: [amd64, arm64]
        ocaml_versions: ["4.11.1", "4.12.0"]
        crunch: true
        repo: ocaml/opam
    """
    distros: List[Distro] = list(ALL_DISTROS)
    arches: List[Arch] = list(Arch)
    ocaml_versions: List[str] = [str(v) for v in Releases.recent_with_dev]
    crunch: bool = True
    repo: str = "ocaml/opam"

    @field_validator("ocaml_versions")
    @classmethod
    def _check_versions(cls, values: List[str]) -> List[str]:
        for value in values:
            OCamlVersion.parse(value)
        return values

    @property
    def versions(self) -> List[OCamlVersion]:
        return [OCamlVersion.parse(v) for v in self.ocaml_versions]

    @classmethod
    def from_yaml(cls, path: str) -> "MatrixConfig":
        """
        Loads a configuration file. Keys left out keep their defaults.

        :param path: Path to the YAML file.
        :raises FileNotFoundError: If the file does not exist.
        :raises ValueError: If a value does not validate.
        """
        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        if not data:
            data = {}
        return cls(**data)

    def override(
        self,
        distros: Optional[List[Distro]] = None,
        arches: Optional[List[Arch]] = None,
        ocaml_versions: Optional[List[str]] = None,
        crunch: Optional[bool] = None,
    ) -> "MatrixConfig":
        """Returns a copy where every non-empty argument replaces the file value."""
        update = {}
        if distros:
            update["distros"] = list(distros)
        if arches:
            update["arches"] = list(arches)
        if ocaml_versions:
            update["ocaml_versions"] = list(ocaml_versions)
        if crunch is not None:
            update["crunch"] = crunch
        return self.model_validate({**self.model_dump(), **update})
