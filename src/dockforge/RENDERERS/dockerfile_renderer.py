"""
Renderers turning Dockerfile instructions into canonical text.
"""
import json
from typing import Iterable, Sequence, Tuple, Union

from ..MODELS.dockerfile_ast import (
    Add,
    Cmd,
    Comment,
    Copy,
    Dockerfile,
    Entrypoint,
    Env,
    ExecForm,
    Expose,
    From,
    Label,
    Maintainer,
    Onbuild,
    ParserDirective,
    Run,
    Shell,
    ShellForm,
    ShellsForm,
    User,
    Volume,
    Workdir,
)

DEFAULT_ESCAPE = "\\"


def continuation(escape: str = DEFAULT_ESCAPE) -> str:
    """The separator chaining shell commands, ending in the active escape character."""
    return f" && {escape}\n  "


def quote(value: str) -> str:
    """Double-quotes a string, escaping quotes, backslashes and control characters."""
    return json.dumps(value, ensure_ascii=False)


def json_array(values: Sequence[str]) -> str:
    if not values:
        return "[ ]"
    return "[ %s ]" % ", ".join(quote(v) for v in values)


def _quoted_pairs(pairs: Iterable[Tuple[str, str]]) -> str:
    return " ".join(f"{k}={quote(v)}" for k, v in pairs)


class DockerfileRenderer:
    """
    Renders instructions one line at a time.

    Instructions with no usable content (an empty exec array, no environment
    pairs, no copy sources...) render as an empty string instead of raising.
    """

    def render(self, value: Union[Dockerfile, object]) -> str:
        """
        Renders a whole Dockerfile, or a single instruction.

        :param value: A Dockerfile or any instruction model.
        :return: The rendered text; Dockerfile lines are joined with newlines.
        """
        if isinstance(value, Dockerfile):
            escape = DEFAULT_ESCAPE
            lines = []
            for inst in value.instructions:
                if isinstance(inst, ParserDirective) and inst.directive == "escape":
                    escape = inst.value
                lines.append(self.render_line(inst, escape))
            return "\n".join(lines)
        return self.render_line(value)

    def render_command(self, command, escape: str = DEFAULT_ESCAPE) -> str:
        if isinstance(command, ShellForm):
            return command.command
        if isinstance(command, ShellsForm):
            return continuation(escape).join(command.commands)
        if isinstance(command, ExecForm):
            return json_array(command.args) if command.args else ""
        raise TypeError(f"Not a shell or exec form: {command!r}")

    def render_env(self, pairs) -> str:
        if len(pairs) == 1:
            key, value = pairs[0]
            return f"{key} {value}"
        return _quoted_pairs(pairs)

    def render_line(self, inst, escape: str = DEFAULT_ESCAPE) -> str:
        if isinstance(inst, Comment):
            return _keyword("#", inst.text)
        if isinstance(inst, From):
            return _keyword("FROM", self._render_from(inst))
        if isinstance(inst, Maintainer):
            return _keyword("MAINTAINER", inst.name)
        if isinstance(inst, (Run, Cmd, Entrypoint)):
            keyword = {Run: "RUN", Cmd: "CMD", Entrypoint: "ENTRYPOINT"}[type(inst)]
            return _keyword(keyword, self.render_command(inst.command, escape))
        if isinstance(inst, Expose):
            return _keyword("EXPOSE", " ".join(str(p) for p in inst.ports))
        if isinstance(inst, Env):
            return _keyword("ENV", self.render_env(inst.pairs) if inst.pairs else "")
        if isinstance(inst, Add):
            return _keyword("ADD", self._render_transfer(inst.sources, inst.destination))
        if isinstance(inst, Copy):
            body = self._render_transfer(inst.sources, inst.destination)
            if body and inst.from_stage is not None:
                body = f"--from={inst.from_stage} {body}"
            return _keyword("COPY", body)
        if isinstance(inst, Volume):
            return _keyword("VOLUME", json_array(inst.paths))
        if isinstance(inst, User):
            return _keyword("USER", inst.name)
        if isinstance(inst, Workdir):
            return _keyword("WORKDIR", inst.path)
        if isinstance(inst, Onbuild):
            return _keyword("ONBUILD", self.render_line(inst.instruction, escape))
        if isinstance(inst, Label):
            return _keyword("LABEL", _quoted_pairs(inst.pairs))
        if isinstance(inst, Shell):
            return _keyword("SHELL", json_array(inst.args) if inst.args else "")
        if isinstance(inst, ParserDirective):
            return f"# {inst.directive}={inst.value}"
        raise TypeError(f"Unknown instruction: {inst!r}")

    def _render_from(self, inst: From) -> str:
        image = inst.image
        if inst.digest:
            image = f"{image}@{inst.digest}"
        elif inst.tag:
            image = f"{image}:{inst.tag}"
        if inst.platform:
            image = f"--platform={inst.platform} {image}"
        if inst.alias:
            image = f"{image} AS {inst.alias}"
        return image

    def _render_transfer(self, sources, destination) -> str:
        if not sources:
            return ""
        return " ".join(list(sources) + [destination])


def _keyword(keyword: str, body: str) -> str:
    # an empty body means there is nothing valid to emit
    if not body:
        return ""
    return f"{keyword} {body}"


_default_renderer = DockerfileRenderer()


def render(value) -> str:
    """Renders a Dockerfile or a single instruction with the default renderer."""
    return _default_renderer.render(value)
