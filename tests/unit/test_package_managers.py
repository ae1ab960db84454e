import pytest
from dockforge.BUILDERS.dockerfile_builder import shell_commands
from dockforge.MANAGERS.apk import EDGE_TESTING, ApkPackageManager
from dockforge.MANAGERS.apt import AptPackageManager
from dockforge.MANAGERS.cygwin import CygwinPackageManager
from dockforge.MANAGERS.package_manager import DistroQuirks, PackageManager, UserOptions
from dockforge.MANAGERS.pacman import PacmanPackageManager
from dockforge.MANAGERS.rpm import RpmPackageManager
from dockforge.MANAGERS.zypper import ZypperPackageManager
from dockforge.MODELS.dockerfile_ast import User, Workdir
from dockforge.RENDERERS.dockerfile_renderer import render

LINUX_STRATEGIES = [
    AptPackageManager,
    RpmPackageManager,
    ApkPackageManager,
    ZypperPackageManager,
    PacmanPackageManager,
]


def test_strategy_is_abstract():
    with pytest.raises(TypeError):
        PackageManager()


def test_apt_install_updates_first():
    commands = shell_commands(AptPackageManager().install(["git", "curl"]))
    assert commands[0] == "apt-get -y update"
    assert commands[-1] == "DEBIAN_FRONTEND=noninteractive apt-get -y install git curl"


def test_rpm_install_cleans_cache():
    commands = shell_commands(RpmPackageManager().install(["git"]))
    assert commands == ["yum install -y git && yum clean all"]


def test_rpm_rebuild_db_quirk():
    pm = RpmPackageManager(DistroQuirks(rebuild_package_db=True))
    assert shell_commands(pm.install(["git"])) == ["rpm --rebuilddb && yum install -y git && yum clean all"]
    assert "touch /var/lib/rpm/*" in shell_commands(pm.prepare())


def test_rpm_extra_repository_quirk():
    pm = RpmPackageManager(DistroQuirks(extra_repository="powertools"))
    commands = shell_commands(pm.install_development_toolchain())
    assert "yum config-manager --set-enabled powertools" in commands
    assert not any("config-manager" in c for c in shell_commands(RpmPackageManager().install_development_toolchain()))


def test_rpm_group_install():
    commands = shell_commands(RpmPackageManager().install_development_toolchain())
    assert 'yum groupinstall -y "Development Tools" && yum clean all' in commands


def test_apk_install():
    commands = shell_commands(ApkPackageManager().install(["git"]))
    assert commands == ["apk update && apk upgrade", "apk add git"]


def test_apk_add_repository():
    rendered = render(ApkPackageManager().add_repository("http://example.com/edge/testing", tag="testing"))
    assert rendered == "RUN echo '@testing http://example.com/edge/testing' >> /etc/apk/repositories"


def test_zypper_pattern_installed_separately():
    commands = shell_commands(ZypperPackageManager().install_development_toolchain())
    assert "zypper install -y -t pattern devel_C_C++" in commands


def test_pacman_install_clears_cache():
    assert shell_commands(PacmanPackageManager().install(["git"])) == ["pacman -Syu --noconfirm git && yes | pacman -Scc"]


def test_extra_packages_appended():
    commands = shell_commands(AptPackageManager().install_development_toolchain(["libgmp-dev"]))
    assert commands[-1].endswith("bubblewrap libgmp-dev")


@pytest.mark.parametrize("strategy", LINUX_STRATEGIES)
def test_add_user_contract(strategy):
    options = UserOptions(uid=1000, gid=1000, sudo=True)
    script = strategy().add_user("opam", options)
    commands = shell_commands(script)
    assert any("/etc/sudoers.d/opam" in c for c in commands)
    assert "passwd -l opam" in commands
    assert commands[-2:] == ["mkdir .ssh", "chmod 700 .ssh"]
    assert any("1000" in c for c in commands)
    users = [i for i in script.instructions if isinstance(i, User)]
    workdirs = [i for i in script.instructions if isinstance(i, Workdir)]
    assert users == [User(name="opam")]
    assert workdirs == [Workdir(path="/home/opam")]


@pytest.mark.parametrize("strategy", LINUX_STRATEGIES)
def test_add_user_without_sudo(strategy):
    commands = shell_commands(strategy().add_user("opam", UserOptions()))
    assert not any("sudoers" in c for c in commands)
    assert not any("groupadd" in c or "addgroup" in c for c in commands)


def test_add_user_creates_group_before_user():
    commands = shell_commands(AptPackageManager().add_user("opam", UserOptions(uid=1000, gid=1000)))
    group = commands.index("addgroup --gid 1000 opam")
    created = commands.index("adduser --uid 1000 --gid 1000 --disabled-password --gecos '' opam")
    assert group < created


def test_add_user_extra_packages():
    commands = shell_commands(RpmPackageManager().add_user("opam", UserOptions(extra_packages=["vim"])))
    assert commands[0] == "yum install -y vim && yum clean all"


def test_cygwin_runs_through_bash():
    rendered = render(CygwinPackageManager().run("make install"))
    assert rendered == 'RUN C:\\cygwin64\\bin\\bash.exe --login -c "make install"'


def test_cygwin_host_path():
    pm = CygwinPackageManager()
    assert pm.host_path("/usr/local/bin/opam") == "C:/cygwin64/usr/local/bin/opam"
    assert pm.host_path("/usr/bin/opam") == "C:/cygwin64/bin/opam"


def test_cygwin_install_packages_comma_separated():
    rendered = render(CygwinPackageManager().install(["git", "make"]))
    assert rendered.endswith("--packages git,make")


def test_cygwin_user_ignores_ids():
    rendered = render(CygwinPackageManager().add_user("opam", UserOptions(uid=1000, gid=1000, sudo=True)))
    assert "net user opam /add" in rendered
    assert "net localgroup Administrators opam /add" in rendered
    assert "1000" not in rendered


def test_opam_prefix_per_family():
    assert AptPackageManager.opam_prefix == "/usr/local"
    assert RpmPackageManager.opam_prefix == "/usr"
    assert ZypperPackageManager.opam_prefix == "/usr"


def test_apk_prepare_registers_edge_testing():
    rendered = render(ApkPackageManager().prepare())
    assert rendered == f"RUN echo '@testing {EDGE_TESTING}' >> /etc/apk/repositories"
    assert EDGE_TESTING == "http://dl-cdn.alpinelinux.org/alpine/edge/testing"
