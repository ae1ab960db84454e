"""
RPM rules for yum/dnf based distributions (CentOS, Fedora, OracleLinux).
"""
from typing import Optional, Sequence

from ..BUILDERS.dockerfile_builder import concat, empty, env, user, workdir
from ..BUILDERS.linux import sudoers_entry
from ..MODELS.dockerfile_ast import Dockerfile
from .package_manager import PackageManager, UserOptions, with_extra

DEV_PACKAGES = ["sudo", "passwd", "bzip2", "patch", "nano", "git"]


class RpmPackageManager(PackageManager):
    style = "rpm"
    build_packages = [
        "sudo", "passwd", "bzip2", "patch", "nano", "git",
        "which", "tar", "curl", "xz", "libcap-devel", "openssl",
        "make", "gcc", "gcc-c++",
    ]
    opam_prefix = "/usr"
    bubblewrap_from_source = True

    def _yum(self, subcommand: str) -> str:
        command = f"yum {subcommand} && yum clean all"
        if self.quirks.rebuild_package_db:
            command = f"rpm --rebuilddb && {command}"
        return command

    def update(self) -> Dockerfile:
        return self.run("yum update -y")

    def install(self, packages: Sequence[str]) -> Dockerfile:
        return self.run(self._yum("install -y " + " ".join(packages)))

    def groupinstall(self, group: str) -> Dockerfile:
        return self.run(self._yum(f'groupinstall -y "{group}"'))

    def prepare(self) -> Dockerfile:
        fragment = self.run("yum --version || dnf install -y yum")
        if self.quirks.rebuild_package_db:
            fragment = fragment + self.run("touch /var/lib/rpm/*") + self.install(["yum-plugin-ovl"])
        return fragment + self.update()

    def configure_system(self) -> Dockerfile:
        return self.run(
            "sed -i.bak '/LC_TIME LC_ALL LANGUAGE/aDefaults    env_keep += \"OPAMYES OPAMJOBS OPAMVERBOSE\"' /etc/sudoers"
        )

    def enable_repository(self, name: str) -> Dockerfile:
        return self.run(f"yum config-manager --set-enabled {name}") + self.update()

    def install_development_toolchain(self, extra_packages: Optional[Sequence[str]] = None) -> Dockerfile:
        fragment = self.install(with_extra(DEV_PACKAGES, extra_packages)) + self.groupinstall("Development Tools")
        if self.quirks.extra_repository:
            fragment = fragment + self.enable_repository(self.quirks.extra_repository)
        return fragment

    def install_system_toolchain(self) -> Dockerfile:
        return self.install(["ocaml", "ocaml-camlp4-devel", "ocaml-ocamldoc"])

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
            sudoers_entry(username, disable_requiretty=True) if options.sudo else empty(),
            self.run(f"groupadd -g {options.gid} {username}") if options.gid is not None else empty(),
            self.run(f"useradd {flags}-d {home} -m -s /bin/bash {username}"),
            self.run(f"passwd -l {username}"),
            self.run(f"chown -R {username}:{username} {home}"),
            user(username),
            env([("HOME", home)]),
            workdir(home),
            self._ssh_dir(),
        )
