import subprocess
import pytest
from dockforge.BUILDERS.dockerfile_builder import from_, run
from dockforge.UTILS.output_writer import generate_dockerfiles, generate_dockerfiles_in_git_branches


def sample_matrix():
    return {
        "a-tag": from_("debian", tag="11") + run("apt-get update") + run("apt-get install -y git"),
        "b-tag": from_("alpine", tag="3.13") + run("apk update"),
    }


def test_generate_dockerfiles(tmp_path):
    written = generate_dockerfiles(sample_matrix(), str(tmp_path))
    assert len(written) == 2
    content = (tmp_path / "a-tag" / "Dockerfile").read_text()
    assert content == "FROM debian:11\nRUN apt-get update && \\\n  apt-get install -y git\n"
    assert (tmp_path / "b-tag" / "Dockerfile").read_text() == "FROM alpine:3.13\nRUN apk update\n"


def test_generate_dockerfiles_no_crunch(tmp_path):
    generate_dockerfiles(sample_matrix(), str(tmp_path), crunch=False)
    content = (tmp_path / "a-tag" / "Dockerfile").read_text()
    assert content == "FROM debian:11\nRUN apt-get update\nRUN apt-get install -y git\n"


def git(repo, *args):
    return subprocess.run(["git", *args], cwd=repo, check=True, capture_output=True, text=True).stdout


@pytest.fixture
def repo(tmp_path):
    try:
        git(tmp_path, "init", "-q", "-b", "master")
    except (FileNotFoundError, subprocess.CalledProcessError):
        pytest.skip("git is not available")
    git(tmp_path, "config", "user.email", "test@example.com")
    git(tmp_path, "config", "user.name", "Test")
    git(tmp_path, "commit", "-q", "--allow-empty", "-m", "init")
    return tmp_path


def test_generate_in_git_branches(repo):
    branches = generate_dockerfiles_in_git_branches(sample_matrix(), str(repo))
    assert branches == ["a-tag", "b-tag"]
    assert git(repo, "show", "b-tag:Dockerfile") == "FROM alpine:3.13\nRUN apk update\n"
    assert git(repo, "rev-parse", "--abbrev-ref", "HEAD").strip() == "master"


def test_git_failure_propagates(tmp_path):
    with pytest.raises((subprocess.CalledProcessError, FileNotFoundError)):
        generate_dockerfiles_in_git_branches(sample_matrix(), str(tmp_path / "missing"))
