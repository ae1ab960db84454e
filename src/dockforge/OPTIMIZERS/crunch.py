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
Layer compaction for Dockerfiles.

Adjacent shell-form RUN instructions are folded into a single RUN whose
commands are chained with ``&&``, so the image ends up with fewer layers
while the commands still execute in the same order.
"""
from typing import List, Optional

from ..MODELS.dockerfile_ast import Dockerfile, Run, ShellForm, ShellsForm


def _shell_commands(inst) -> Optional[List[str]]:
    """Returns the command list of a shell-form RUN, or None if it cannot merge."""
    if not isinstance(inst, Run):
        return None
    if isinstance(inst.command, ShellForm):
        return [inst.command.command]
    if isinstance(inst.command, ShellsForm):
        return list(inst.command.commands)
    return None


def merge_runs(first: Run, second: Run) -> Optional[Run]:
    """
    Merges two shell-form RUN instructions into one.

    :return: The merged instruction, or None when either side is not mergeable.
    """
    left = _shell_commands(first)
    right = _shell_commands(second)
    if left is None or right is None:
        return None
    return Run(command=ShellsForm(commands=tuple(left + right)))


def crunch_pass(dockerfile: Dockerfile) -> Dockerfile:
    """
    One left-to-right pass: every instruction is merged into the last emitted
    one when both are shell-form RUNs.
    """
    output = []
    for inst in dockerfile.instructions:
        if output:
            merged = merge_runs(output[-1], inst)
            if merged is not None:
                output[-1] = merged
                continue
        output.append(inst)
    return Dockerfile(instructions=tuple(output))


def crunch(dockerfile: Dockerfile) -> Dockerfile:
    """
    Compacts RUN layers until a fixed point is reached.

    Non-RUN instructions are merge barriers and are never moved or dropped.
    The result is idempotent: crunching it again returns an equal Dockerfile.

    Args:
        dockerfile: The Dockerfile to compact.

    Returns:
        Dockerfile: The compacted Dockerfile.
    """
    current = dockerfile
    # each pass that changes anything removes at least one instruction
    for _ in range(len(dockerfile) + 1):
        compacted = crunch_pass(current)
        if compacted == current:
            return compacted
        current = compacted
    return current
