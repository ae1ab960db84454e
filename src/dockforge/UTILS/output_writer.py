"""
Writes a generated matrix to disk, either as a directory tree or as one git
branch per image.
"""
import logging
import os
import subprocess
from typing import Dict, List

from ..MODELS.dockerfile_ast import Dockerfile
from ..OPTIMIZERS.crunch import crunch as crunch_dockerfile
from ..RENDERERS.dockerfile_renderer import render

logger = logging.getLogger(__name__)

DOCKERFILE_NAME = "Dockerfile"


def _contents(dockerfile: Dockerfile, crunch: bool) -> str:
    if crunch:
        dockerfile = crunch_dockerfile(dockerfile)
    return render(dockerfile) + "\n"


def generate_dockerfiles(matrix: Dict[str, Dockerfile], output_dir: str, crunch: bool = True) -> List[str]:
    """
    Writes ``<output_dir>/<tag>/Dockerfile`` for every entry.

    :return: Paths of the written files, in matrix order.
    """
    written = []
    for tag, dockerfile in matrix.items():
        tag_dir = os.path.join(output_dir, tag)
        os.makedirs(tag_dir, exist_ok=True)
        path = os.path.join(tag_dir, DOCKERFILE_NAME)
        with open(path, "w") as f:
            f.write(_contents(dockerfile, crunch))
        logger.info("Wrote %s", path)
        written.append(path)
    return written


def _git(repo_dir: str, *args: str) -> None:
    logger.info("git %s", " ".join(args))
    subprocess.run(["git", *args], cwd=repo_dir, check=True)


def generate_dockerfiles_in_git_branches(
    matrix: Dict[str, Dockerfile],
    repo_dir: str,
    crunch: bool = True,
    base_branch: str = "master",
) -> List[str]:
    """
    Commits each Dockerfile to its own branch, named after the tag.

    Branches are created (or reset) from ``base_branch``; the repository is
    left on ``base_branch`` afterwards.

    :return: The branch names, in matrix order.
    :raises subprocess.CalledProcessError: If a git step fails.
    """
    branches = []
    for tag, dockerfile in matrix.items():
        _git(repo_dir, "checkout", "-B", tag, base_branch)
        path = os.path.join(repo_dir, DOCKERFILE_NAME)
        with open(path, "w") as f:
            f.write(_contents(dockerfile, crunch))
        _git(repo_dir, "add", DOCKERFILE_NAME)
        _git(repo_dir, "commit", "--allow-empty", "-m", f"Dockerfile for {tag}")
        branches.append(tag)
    if branches:
        _git(repo_dir, "checkout", base_branch)
    return branches
