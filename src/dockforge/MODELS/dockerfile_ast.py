"""
Models for the Dockerfile Abstract Syntax Tree.

Every instruction is a frozen pydantic model tagged with a ``kind`` literal,
so the full set forms a closed, discriminated union.  A ``Dockerfile`` is an
ordered tuple of instructions; ``+`` concatenates two of them.
"""
from typing import Annotated, Literal, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ShellForm(_Frozen):
    """A single shell string, e.g. ``RUN make install``."""
    form: Literal["shell"] = "shell"
    command: str


class ShellsForm(_Frozen):
    """Several shell strings chained with ``&&`` into one instruction."""
    form: Literal["shells"] = "shells"
    commands: Tuple[str, ...] = ()


class ExecForm(_Frozen):
    """An argument vector, rendered as a quoted array."""
    form: Literal["exec"] = "exec"
    args: Tuple[str, ...] = ()


ShellOrExec = Annotated[
    Union[ShellForm, ShellsForm, ExecForm], Field(discriminator="form")
]


class Comment(_Frozen):
    kind: Literal["comment"] = "comment"
    text: str


class From(_Frozen):
    """
    Opens a build stage from a base image.

    At most one of ``tag`` and ``digest`` is expected; a digest wins.
    """
    kind: Literal["from"] = "from"
    image: str
    tag: Optional[str] = None
    digest: Optional[str] = None
    platform: Optional[str] = None
    alias: Optional[str] = None


class Maintainer(_Frozen):
    kind: Literal["maintainer"] = "maintainer"
    name: str


class Run(_Frozen):
    kind: Literal["run"] = "run"
    command: ShellOrExec


class Cmd(_Frozen):
    kind: Literal["cmd"] = "cmd"
    command: ShellOrExec


class Expose(_Frozen):
    kind: Literal["expose"] = "expose"
    ports: Tuple[int, ...] = ()


class Env(_Frozen):
    kind: Literal["env"] = "env"
    pairs: Tuple[Tuple[str, str], ...] = ()


class Add(_Frozen):
    kind: Literal["add"] = "add"
    sources: Tuple[str, ...] = ()
    destination: str


class Copy(_Frozen):
    """
    Copies files into the image, optionally out of an earlier build stage
    referenced by index or alias.
    """
    kind: Literal["copy"] = "copy"
    sources: Tuple[str, ...] = ()
    destination: str
    from_stage: Optional[Union[int, str]] = None


class Entrypoint(_Frozen):
    kind: Literal["entrypoint"] = "entrypoint"
    command: ShellOrExec


class Volume(_Frozen):
    kind: Literal["volume"] = "volume"
    paths: Tuple[str, ...] = ()


class User(_Frozen):
    kind: Literal["user"] = "user"
    name: str


class Workdir(_Frozen):
    kind: Literal["workdir"] = "workdir"
    path: str


class Onbuild(_Frozen):
    kind: Literal["onbuild"] = "onbuild"
    instruction: "Instruction"


class Label(_Frozen):
    kind: Literal["label"] = "label"
    pairs: Tuple[Tuple[str, str], ...] = ()


class Shell(_Frozen):
    """Overrides the default shell used by subsequent shell-form instructions."""
    kind: Literal["shell"] = "shell"
    args: Tuple[str, ...] = ()


class ParserDirective(_Frozen):
    kind: Literal["parser_directive"] = "parser_directive"
    directive: Literal["escape", "syntax"]
    value: str


Instruction = Annotated[
    Union[
        Comment,
        From,
        Maintainer,
        Run,
        Cmd,
        Expose,
        Env,
        Add,
        Copy,
        Entrypoint,
        Volume,
        User,
        Workdir,
        Onbuild,
        Label,
        Shell,
        ParserDirective,
    ],
    Field(discriminator="kind"),
]

Onbuild.model_rebuild()


class Dockerfile(_Frozen):
    """
    Represents a complete (or partial) Dockerfile as an ordered instruction list.
    """
    instructions: Tuple[Instruction, ...] = ()

    @classmethod
    def of(cls, *instructions) -> "Dockerfile":
        return cls(instructions=tuple(instructions))

    def __add__(self, other: "Dockerfile") -> "Dockerfile":
        if not isinstance(other, Dockerfile):
            return NotImplemented
        return Dockerfile(instructions=self.instructions + other.instructions)

    def __len__(self) -> int:
        return len(self.instructions)

    @property
    def stages(self) -> int:
        """Number of build stages, i.e. FROM instructions."""
        return sum(1 for inst in self.instructions if isinstance(inst, From))
