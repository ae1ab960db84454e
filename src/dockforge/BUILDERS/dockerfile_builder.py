# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Combinators producing Dockerfile fragments.

Each function returns a ``Dockerfile`` holding one or more instructions, so
fragments compose with ``+`` (or ``concat`` for many at once):

    from_("debian", tag="11") + run("apt-get update") + user("opam")
"""
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

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
    User,
    Volume,
    Workdir,
)

T = TypeVar("T")


def empty() -> Dockerfile:
    return Dockerfile()


def concat(*fragments: Dockerfile) -> Dockerfile:
    """Concatenates fragments in order."""
    result = empty()
    for fragment in fragments:
        result = result + fragment
    return result


def maybe(fn: Callable[[T], Dockerfile], value: Optional[T]) -> Dockerfile:
    """Applies ``fn`` to ``value`` unless it is None, in which case nothing is emitted."""
    if value is None:
        return empty()
    return fn(value)


def from_(
    image: str,
    tag: Optional[str] = None,
    digest: Optional[str] = None,
    platform: Optional[str] = None,
    alias: Optional[str] = None,
) -> Dockerfile:
    return Dockerfile.of(
        From(image=image, tag=tag, digest=digest, platform=platform, alias=alias)
    )


def comment(text: str) -> Dockerfile:
    return Dockerfile.of(Comment(text=text))


def maintainer(name: str) -> Dockerfile:
    return Dockerfile.of(Maintainer(name=name))


def run(command: str) -> Dockerfile:
    return Dockerfile.of(Run(command=ShellForm(command=command)))


def run_exec(args: Sequence[str]) -> Dockerfile:
    return Dockerfile.of(Run(command=ExecForm(args=tuple(args))))


def cmd(command: str) -> Dockerfile:
    return Dockerfile.of(Cmd(command=ShellForm(command=command)))


def cmd_exec(args: Sequence[str]) -> Dockerfile:
    return Dockerfile.of(Cmd(command=ExecForm(args=tuple(args))))


def entrypoint(command: str) -> Dockerfile:
    return Dockerfile.of(Entrypoint(command=ShellForm(command=command)))


def entrypoint_exec(args: Sequence[str]) -> Dockerfile:
    return Dockerfile.of(Entrypoint(command=ExecForm(args=tuple(args))))


def expose_port(port: int) -> Dockerfile:
    return expose_ports([port])


def expose_ports(ports: Iterable[int]) -> Dockerfile:
    return Dockerfile.of(Expose(ports=tuple(ports)))


def env(pairs: Sequence[Tuple[str, str]]) -> Dockerfile:
    """
    Sets environment variables.

    :param pairs: Ordered (key, value) pairs; order is kept in the output.
    """
    return Dockerfile.of(Env(pairs=tuple(tuple(p) for p in pairs)))


def add(src: Sequence[str], dst: str) -> Dockerfile:
    return Dockerfile.of(Add(sources=tuple(src), destination=dst))


def copy(src: Sequence[str], dst: str, from_stage: Optional[Union[int, str]] = None) -> Dockerfile:
    """
    Copies files into the image.

    :param src: Source paths.
    :param dst: Destination path.
    :param from_stage: Index or alias of an earlier build stage to copy from.
    """
    return Dockerfile.of(Copy(sources=tuple(src), destination=dst, from_stage=from_stage))


def user(name: str) -> Dockerfile:
    return Dockerfile.of(User(name=name))


def workdir(path: str) -> Dockerfile:
    return Dockerfile.of(Workdir(path=path))


def volume(path: str) -> Dockerfile:
    return volumes([path])


def volumes(paths: Iterable[str]) -> Dockerfile:
    return Dockerfile.of(Volume(paths=tuple(paths)))


def label(pairs: Sequence[Tuple[str, str]]) -> Dockerfile:
    return Dockerfile.of(Label(pairs=tuple(tuple(p) for p in pairs)))


def onbuild(fragment: Dockerfile) -> Dockerfile:
    """Wraps every instruction of ``fragment`` in an ONBUILD trigger."""
    return Dockerfile(
        instructions=tuple(Onbuild(instruction=inst) for inst in fragment.instructions)
    )


def shell(args: Sequence[str]) -> Dockerfile:
    return Dockerfile.of(Shell(args=tuple(args)))


def parser_directive(directive: str, value: str) -> Dockerfile:
    return Dockerfile.of(ParserDirective(directive=directive, value=value))


def escape(char: str) -> Dockerfile:
    return parser_directive("escape", char)


def shell_commands(dockerfile: Dockerfile) -> List[str]:
    """Flattens every shell-form RUN command in execution order."""
    commands: List[str] = []
    for inst in dockerfile.instructions:
        if isinstance(inst, Run) and not isinstance(inst.command, ExecForm):
            if isinstance(inst.command, ShellForm):
                commands.append(inst.command.command)
            else:
                commands.extend(inst.command.commands)
    return commands
