from dockforge.BUILDERS.dockerfile_builder import (
    add,
    cmd,
    cmd_exec,
    comment,
    copy,
    entrypoint_exec,
    env,
    escape,
    expose_ports,
    from_,
    label,
    onbuild,
    run,
    shell,
    user,
    volume,
    volumes,
    workdir,
)
from dockforge.MODELS.dockerfile_ast import Dockerfile, Entrypoint, ExecForm, Run, ShellsForm
from dockforge.RENDERERS.dockerfile_renderer import json_array, quote, render


def test_render_from_variants():
    assert render(from_("debian")) == "FROM debian"
    assert render(from_("debian", tag="11")) == "FROM debian:11"
    assert render(from_("debian", digest="sha256:abc")) == "FROM debian@sha256:abc"
    assert render(from_("debian", tag="11", platform="linux/386")) == "FROM --platform=linux/386 debian:11"
    assert render(from_("debian", tag="11", alias="build")) == "FROM debian:11 AS build"


def test_render_run_forms():
    assert render(run("make install")) == "RUN make install"
    shells = Run(command=ShellsForm(commands=("apt-get update", "apt-get install -y git")))
    assert render(shells) == "RUN apt-get update && \\\n  apt-get install -y git"
    assert render(cmd_exec(["opam", "exec", "--", "bash"])) == 'CMD [ "opam", "exec", "--", "bash" ]'


def test_render_env_single_pair_is_unquoted():
    assert render(env([("OPAMYES", "1")])) == "ENV OPAMYES 1"


def test_render_env_multiple_pairs_are_quoted():
    assert render(env([("KEY1", "V1"), ("KEY2", "V2")])) == 'ENV KEY1="V1" KEY2="V2"'


def test_render_label_always_quoted():
    assert render(label([("distro_style", "apt")])) == 'LABEL distro_style="apt"'
    assert render(label([("a", "1"), ("b", "2")])) == 'LABEL a="1" b="2"'


def test_render_transfers():
    assert render(add(["a", "b"], "/dst")) == "ADD a b /dst"
    assert render(copy(["/usr/local/bin/opam"], "/usr/bin/opam", from_stage=0)) == (
        "COPY --from=0 /usr/local/bin/opam /usr/bin/opam"
    )
    assert render(copy(["x"], "/y", from_stage="build")) == "COPY --from=build x /y"


def test_render_volumes_always_array():
    assert render(volume("/data")) == 'VOLUME [ "/data" ]'
    assert render(volumes([])) == "VOLUME [ ]"


def test_render_misc():
    assert render(comment("hello")) == "# hello"
    assert render(user("opam")) == "USER opam"
    assert render(workdir("/home/opam")) == "WORKDIR /home/opam"
    assert render(expose_ports([80, 443])) == "EXPOSE 80 443"
    assert render(shell(["/bin/bash", "-c"])) == 'SHELL [ "/bin/bash", "-c" ]'
    assert render(escape("`")) == "# escape=`"


def test_render_onbuild_prefix():
    assert render(onbuild(run("make"))) == "ONBUILD RUN make"


def test_degenerate_content_renders_empty():
    assert render(Entrypoint(command=ExecForm(args=()))) == ""
    assert render(env([])) == ""
    assert render(copy([], "/dst")) == ""


def test_render_script_joins_lines_in_order():
    script = from_("alpine", tag="3.13") + run("apk update") + cmd("sh")
    assert render(script) == "FROM alpine:3.13\nRUN apk update\nCMD sh"


def test_quote_escapes():
    assert quote('say "hi"') == '"say \\"hi\\""'
    assert quote("back\\slash") == '"back\\\\slash"'
    assert quote("tab\there") == '"tab\\there"'
    assert json_array(["a"]) == '[ "a" ]'


def test_entrypoint_exec():
    assert render(entrypoint_exec(["/usr/bin/linux32"])) == 'ENTRYPOINT [ "/usr/bin/linux32" ]'


def test_crunched_run_follows_escape_directive():
    crunched = Run(command=ShellsForm(commands=("apt-get update", "apt-get install -y git")))
    assert render(crunched) == "RUN apt-get update && \\\n  apt-get install -y git"
    script = escape("`") + from_("mcr.microsoft.com/windows/servercore") + Dockerfile.of(crunched)
    assert render(script).splitlines() == [
        "# escape=`",
        "FROM mcr.microsoft.com/windows/servercore",
        "RUN apt-get update && `",
        "  apt-get install -y git",
    ]


def test_escape_directive_reaches_onbuild():
    script = escape("`") + onbuild(Dockerfile.of(Run(command=ShellsForm(commands=("a", "b")))))
    assert render(script) == "# escape=`\nONBUILD RUN a && `\n  b"
