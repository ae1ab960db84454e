"""
Pacman rules for Arch Linux.
"""
from typing import Optional, Sequence

from ..BUILDERS.dockerfile_builder import concat, empty, user, workdir
from ..BUILDERS.linux import sudoers_entry
from ..MODELS.dockerfile_ast import Dockerfile
from .package_manager import PackageManager, UserOptions, with_extra

DEV_PACKAGES = ["make", "gcc", "patch", "tar", "ca-certificates", "git", "rsync", "curl", "sudo", "bash", "nano", "coreutils", "xz", "ncurses", "diffutils", "unzip", "bubblewrap"]


class PacmanPackageManager(PackageManager):
    style = "pacman"
    build_packages = ["base-devel", "git", "curl", "tar"]
    strip_binaries = True

    def update(self) -> Dockerfile:
        return self.run("pacman -Syu --noconfirm")

    def install(self, packages: Sequence[str]) -> Dockerfile:
        return self.run("pacman -Syu --noconfirm " + " ".join(packages) + " && yes | pacman -Scc")

    def install_development_toolchain(self, extra_packages: Optional[Sequence[str]] = None) -> Dockerfile:
        return self.install(with_extra(DEV_PACKAGES, extra_packages))

    def install_system_toolchain(self) -> Dockerfile:
        return self.install(["ocaml"])

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
            self.run(f"useradd {flags}-d {home} -m -s /bin/bash {username}"),
            sudoers_entry(username) if options.sudo else empty(),
            self.run(f"passwd -l {username}"),
            user(username),
            workdir(home),
            self._ssh_dir(),
        )
