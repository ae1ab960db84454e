"""
Cygwin rules for Windows images.

Windows containers run RUN lines through ``cmd``, so anything POSIX is
routed through Cygwin's bash; packages are managed by the Cygwin setup
program.
"""
from typing import Optional, Sequence

from ..BUILDERS.dockerfile_builder import add, concat, empty, run, user, workdir
from ..MODELS.dockerfile_ast import Dockerfile
from ..RENDERERS.dockerfile_renderer import quote
from .package_manager import PackageManager, UserOptions, with_extra

CYGWIN_ROOT = r"C:\cygwin64"
SETUP_DIR = r"C:\cygwin-setup"
SETUP_EXE = SETUP_DIR + r"\setup-x86_64.exe"
SETUP_URL = "https://www.cygwin.com/setup-x86_64.exe"
MIRROR = "http://mirrors.kernel.org/sourceware/cygwin/"

DEV_PACKAGES = [
    "make", "diffutils", "patch", "git", "curl", "unzip", "rsync", "m4",
    "gcc-core", "gcc-g++", "libgmp-devel", "tar", "xz",
]


class CygwinPackageManager(PackageManager):
    style = "cygwin"
    build_packages = DEV_PACKAGES
    strip_binaries = True

    def run(self, command: str) -> Dockerfile:
        return run(f"{CYGWIN_ROOT}\\bin\\bash.exe --login -c {quote(command)}")

    def host_path(self, path: str) -> str:
        # Cygwin mounts /usr/bin onto /bin
        if path.startswith("/usr/bin/"):
            path = path[len("/usr"):]
        return "C:/cygwin64" + path

    def _setup(self, extra_args: str = "") -> Dockerfile:
        return run(
            f"{SETUP_EXE} --quiet-mode --no-shortcuts --no-startmenu --no-desktop --only-site "
            f"--root {CYGWIN_ROOT} --site {MIRROR} --local-package-dir {SETUP_DIR}\\packages"
            + extra_args
        )

    def prepare(self) -> Dockerfile:
        return concat(
            user("ContainerAdministrator"),
            add([SETUP_URL], SETUP_EXE),
            self._setup(),
        )

    def update(self) -> Dockerfile:
        return self._setup(" --upgrade-also")

    def install(self, packages: Sequence[str]) -> Dockerfile:
        return self._setup(" --packages " + ",".join(packages))

    def install_development_toolchain(self, extra_packages: Optional[Sequence[str]] = None) -> Dockerfile:
        return self.install(with_extra(DEV_PACKAGES, extra_packages))

    def install_system_toolchain(self) -> Dockerfile:
        return self.install(["ocaml", "ocaml-compiler-libs"])

    def add_user(self, username: str, options: Optional[UserOptions] = None) -> Dockerfile:
        """
        Creates a local Windows account.

        Windows accounts have no numeric ids, so ``uid`` and ``gid`` are ignored;
        ``sudo`` maps to membership of the Administrators group.
        """
        options = options or UserOptions()
        home = f"/home/{username}"
        return concat(
            self.install(options.extra_packages) if options.extra_packages else empty(),
            run(f"net user {username} /add /passwordreq:no /passwordchg:no"),
            run(f"net localgroup Administrators {username} /add") if options.sudo else empty(),
            self.run(f"mkdir -p {home}"),
            user(username),
            workdir(self.host_path(home)),
            self.run(f"mkdir -p {home}/.ssh && chmod 700 {home}/.ssh"),
        )
