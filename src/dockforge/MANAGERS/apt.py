"""
Apt rules for Debian and Ubuntu.
"""
from typing import Optional, Sequence

from ..BUILDERS.dockerfile_builder import concat, empty, env, user, workdir
from ..BUILDERS.linux import sudoers_entry
from ..MODELS.dockerfile_ast import Dockerfile
from .package_manager import PackageManager, UserOptions, with_extra

DEV_PACKAGES = [
    "sudo",
    "pkg-config",
    "git",
    "build-essential",
    "m4",
    "software-properties-common",
    "unzip",
    "rsync",
    "curl",
    "dialog",
    "nano",
    "libx11-dev",
    "bubblewrap",
]


class AptPackageManager(PackageManager):
    style = "apt"
    build_packages = ["build-essential", "curl", "git", "libcap-dev", "sudo"]
    bubblewrap_from_source = True

    def update(self) -> Dockerfile:
        return concat(
            self.run("apt-get -y update"),
            self.run("DEBIAN_FRONTEND=noninteractive apt-get -y upgrade"),
        )

    def install(self, packages: Sequence[str]) -> Dockerfile:
        return self.update() + self.run(
            "DEBIAN_FRONTEND=noninteractive apt-get -y install " + " ".join(packages)
        )

    def prepare(self) -> Dockerfile:
        return self.run("echo 'Acquire::Retries \"5\";' > /etc/apt/apt.conf.d/mirror-retry")

    def configure_system(self) -> Dockerfile:
        return concat(
            self.run("ln -fs /usr/share/zoneinfo/Europe/London /etc/localtime"),
            self.run("echo 'debconf debconf/frontend select Noninteractive' | debconf-set-selections"),
        )

    def install_development_toolchain(self, extra_packages: Optional[Sequence[str]] = None) -> Dockerfile:
        return self.install(with_extra(DEV_PACKAGES, extra_packages))

    def install_system_toolchain(self) -> Dockerfile:
        return self.install(["ocaml", "ocaml-native-compilers", "camlp4-extra", "rsync"])

    def add_user(self, username: str, options: Optional[UserOptions] = None) -> Dockerfile:
        options = options or UserOptions()
        home = f"/home/{username}"
        flags = ""
        if options.uid is not None:
            flags += f"--uid {options.uid} "
        if options.gid is not None:
            flags += f"--gid {options.gid} "
        return concat(
            self.install(options.extra_packages) if options.extra_packages else empty(),
            sudoers_entry(username) if options.sudo else empty(),
            self.run(f"addgroup --gid {options.gid} {username}") if options.gid is not None else empty(),
            self.run(f"adduser {flags}--disabled-password --gecos '' {username}"),
            self.run(f"passwd -l {username}"),
            self.run(f"chown -R {username}:{username} {home}"),
            user(username),
            env([("HOME", home)]),
            workdir(home),
            self._ssh_dir(),
        )
