"""
Zypper rules for openSUSE.
"""
from typing import Optional, Sequence

from ..BUILDERS.dockerfile_builder import concat, empty, user, workdir
from ..BUILDERS.linux import sudoers_entry
from ..MODELS.dockerfile_ast import Dockerfile
from .package_manager import PackageManager, UserOptions


class ZypperPackageManager(PackageManager):
    style = "zypper"
    build_packages = ["gcc", "gcc-c++", "make", "patch", "sudo", "git", "unzip", "curl", "tar", "gzip", "xz", "libcap-devel"]
    opam_prefix = "/usr"
    bubblewrap_from_source = True

    def update(self) -> Dockerfile:
        return self.run("zypper update -y")

    def install(self, packages: Sequence[str]) -> Dockerfile:
        return self.update() + self.run("zypper install -y " + " ".join(packages))

    def install_development_toolchain(self, extra_packages: Optional[Sequence[str]] = None) -> Dockerfile:
        # patterns can not share a command line with plain packages
        fragment = self.install(["-t pattern devel_C_C++"]) + self.install(["sudo", "git", "unzip", "curl"])
        if extra_packages:
            fragment = fragment + self.install(extra_packages)
        return fragment

    def install_system_toolchain(self) -> Dockerfile:
        return self.install(["ocaml", "ocaml-camlp4", "ocaml-ocamldoc"])

    def add_user(self, username: str, options: Optional[UserOptions] = None) -> Dockerfile:
        options = options or UserOptions()
        home = f"/home/{username}"
        flags = ""
        if options.uid is not None:
            flags += f"-u {options.uid} "
        if options.gid is not None:
            flags += f"-g {options.gid} "
        return concat(
            self.install(options.extra_packages) if options.extra_packages else empty(),
            self.run(f"groupadd -g {options.gid} {username}") if options.gid is not None else empty(),
            self.run(f"useradd {flags}-d {home} -m {username}"),
            sudoers_entry(username) if options.sudo else empty(),
            self.run(f"passwd -l {username}"),
            user(username),
            workdir(home),
            self._ssh_dir(),
        )
