from dockforge.BUILDERS.dockerfile_builder import (
    comment,
    concat,
    empty,
    maybe,
    onbuild,
    run,
    shell_commands,
    user,
)
from dockforge.BUILDERS.linux import git_init, run_as_user, run_sh, sudoers_entry
from dockforge.MODELS.dockerfile_ast import Onbuild
from dockforge.RENDERERS.dockerfile_renderer import render


def test_concat_many():
    script = concat(run("a"), empty(), run("b"), user("opam"))
    assert len(script) == 3
    assert concat() == empty()


def test_maybe():
    assert maybe(comment, None) == empty()
    assert maybe(comment, "x") == comment("x")


def test_onbuild_wraps_every_instruction():
    wrapped = onbuild(run("a") + run("b"))
    assert len(wrapped) == 2
    assert all(isinstance(i, Onbuild) for i in wrapped.instructions)


def test_shell_commands_flattens():
    assert shell_commands(run("a") + comment("x") + run("b")) == ["a", "b"]


def test_run_sh_quotes_whole_command():
    assert render(run_sh("cd /tmp && make")) == 'RUN sh -c "cd /tmp && make"'


def test_run_as_user():
    assert render(run_as_user("opam", "opam init")) == 'RUN sudo -u opam sh -c "opam init"'


def test_git_init_default_identity():
    rendered = render(git_init())
    assert 'git config --global user.email "docker@example.com"' in rendered
    assert 'git config --global user.name "Docker"' in rendered


def test_git_init_custom_runner():
    script = git_init(runner=lambda c: comment(c))
    assert len(script) == 2
    assert render(script).startswith("# git config")


def test_sudoers_entry():
    lines = render(sudoers_entry("opam")).split("\n")
    assert lines[0] == "RUN echo 'opam ALL=(ALL:ALL) NOPASSWD:ALL' > /etc/sudoers.d/opam"
    assert lines[1] == "RUN chmod 440 /etc/sudoers.d/opam"
    assert lines[2] == "RUN chown root:root /etc/sudoers.d/opam"
    assert len(lines) == 3


def test_sudoers_entry_requiretty():
    assert "requiretty" in render(sudoers_entry("opam", disable_requiretty=True))
