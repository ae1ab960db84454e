"""
Shell helpers shared by the Linux package-manager strategies.
"""
from typing import Callable

from ..MODELS.dockerfile_ast import Dockerfile
from ..RENDERERS.dockerfile_renderer import quote
from .dockerfile_builder import concat, run

SUDO_NOPASSWD = "ALL=(ALL:ALL) NOPASSWD:ALL"


def run_sh(command: str) -> Dockerfile:
    """Runs ``command`` through ``sh -c`` so shell operators apply to all of it."""
    return run(f"sh -c {quote(command)}")


def run_as_user(username: str, command: str) -> Dockerfile:
    return run(f"sudo -u {username} sh -c {quote(command)}")


def git_init(
    name: str = "Docker",
    email: str = "docker@example.com",
    runner: Callable[[str], Dockerfile] = run,
) -> Dockerfile:
    """
    Sets a global git identity so later clones and commits do not prompt.

    :param runner: How to execute a shell command; the Cygwin strategy
        passes its own so the commands run under bash.
    """
    return concat(
        runner(f"git config --global user.email {quote(email)}"),
        runner(f"git config --global user.name {quote(name)}"),
    )


def sudoers_entry(username: str, disable_requiretty: bool = False) -> Dockerfile:
    """
    Grants passwordless sudo to ``username`` via a dedicated sudoers file.

    The file is mode 440 and owned by root, as sudo requires.
    """
    sudofile = f"/etc/sudoers.d/{username}"
    fragment = concat(
        run(f"echo '{username} {SUDO_NOPASSWD}' > {sudofile}"),
        run(f"chmod 440 {sudofile}"),
        run(f"chown root:root {sudofile}"),
    )
    if disable_requiretty:
        fragment = fragment + run("sed -i.bak 's/^Defaults.*requiretty//g' /etc/sudoers")
    return fragment
