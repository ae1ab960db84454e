"""
Apk rules for Alpine.
"""
from typing import Optional, Sequence

from ..BUILDERS.dockerfile_builder import concat, empty, user, workdir
from ..BUILDERS.linux import sudoers_entry
from ..MODELS.dockerfile_ast import Dockerfile
from .package_manager import PackageManager, UserOptions, with_extra

EDGE_TESTING = "http://dl-cdn.alpinelinux.org/alpine/edge/testing"

DEV_PACKAGES = ["alpine-sdk", "openssh", "bash", "nano", "ncurses-dev", "bubblewrap", "sudo"]


class ApkPackageManager(PackageManager):
    style = "apk"
    build_packages = ["build-base", "bzip2", "git", "tar", "curl", "ca-certificates", "openssl"]
    strip_binaries = True

    def update(self) -> Dockerfile:
        return self.run("apk update && apk upgrade")

    def install(self, packages: Sequence[str]) -> Dockerfile:
        return self.update() + self.run("apk add " + " ".join(packages))

    def prepare(self) -> Dockerfile:
        # only consulted for packages requested as name@testing
        return self.add_repository(EDGE_TESTING, tag="testing")

    def add_repository(self, url: str, tag: Optional[str] = None) -> Dockerfile:
        """Appends a repository, optionally pinned as ``@tag``."""
        entry = f"@{tag} {url}" if tag else url
        return self.run(f"echo '{entry}' >> /etc/apk/repositories")

    def install_development_toolchain(self, extra_packages: Optional[Sequence[str]] = None) -> Dockerfile:
        return self.install(with_extra(DEV_PACKAGES, extra_packages))

    def install_system_toolchain(self) -> Dockerfile:
        return self.install(["ocaml", "ocaml-compiler-libs", "ocaml-ocamldoc"])

    def add_user(self, username: str, options: Optional[UserOptions] = None) -> Dockerfile:
        options = options or UserOptions()
        home = f"/home/{username}"
        flags = ""
        if options.uid is not None:
            flags += f"-u {options.uid} "
        if options.gid is not None:
            flags += f"-G {username} "
        return concat(
            self.install(options.extra_packages) if options.extra_packages else empty(),
            self.run(f"addgroup -g {options.gid} {username}") if options.gid is not None else empty(),
            self.run(f"adduser -S {flags}-h {home} -s /bin/bash {username}"),
            sudoers_entry(username, disable_requiretty=True) if options.sudo else empty(),
            self.run(f"passwd -l {username}"),
            user(username),
            workdir(home),
            self._ssh_dir(),
        )
