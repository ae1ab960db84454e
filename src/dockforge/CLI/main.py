"""
Command Line Interface for dockforge.
"""
import logging

import click
from dotenv import load_dotenv

from ..CONVERTERS.manifest import manifest_for
from ..MODELS.arch import Arch
from ..MODELS.distro import LATEST_DISTROS, Distro
from ..MODELS.matrix_config import MatrixConfig
from ..MODELS.toolchain_version import OCamlVersion
from ..RECIPES.matrix_generator import cell_tag, generate, generate_all_compilers_matrix, generate_matrix, supported_cells
from ..RENDERERS.dockerfile_renderer import render
from ..UTILS.output_writer import generate_dockerfiles, generate_dockerfiles_in_git_branches

DISTRO_CHOICE = click.Choice([d.value for d in Distro])
ARCH_CHOICE = click.Choice([a.value for a in Arch])


def _fail(error: Exception):
    click.echo(f"Error: {error}", err=True)
    raise SystemExit(1)


@click.group()
@click.option('--config', '-c', type=click.Path(dir_okay=False), help='Matrix config file (YAML)')
@click.option('--distro', multiple=True, type=DISTRO_CHOICE, help='Restrict to a distribution')
@click.option('--arch', multiple=True, type=ARCH_CHOICE, help='Restrict to an architecture')
@click.option('--ocaml-version', multiple=True, help='Restrict to a compiler version')
@click.option('--latest', is_flag=True, help='Only the latest release of each distribution, unless --distro is given')
@click.option('--verbose', '-v', is_flag=True, help='Log progress')
@click.pass_context
def cli(ctx, config, distro, arch, ocaml_version, latest, verbose):
    """
    dockforge - Dockerfile generator for opam/OCaml images.

    Builds one Dockerfile per supported distribution, architecture and
    compiler version.
    """
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    try:
        matrix_config = MatrixConfig.from_yaml(config) if config else MatrixConfig()
        ctx.obj['config'] = matrix_config.override(
            distros=[Distro(d) for d in distro] or (LATEST_DISTROS if latest else None),
            arches=[Arch(a) for a in arch],
            ocaml_versions=list(ocaml_version),
        )
    except (ValueError, FileNotFoundError) as e:
        _fail(e)


@cli.command(name='list')
@click.pass_context
def list_tags(ctx):
    """List the tags of every supported matrix cell."""
    config = ctx.obj['config']
    for distro, arch, version in supported_cells(config.distros, config.arches, config.versions):
        click.echo(cell_tag(distro, arch, version))


@cli.command()
@click.argument('tag')
@click.option('--no-crunch', is_flag=True, help='Keep one layer per RUN')
@click.pass_context
def show(ctx, tag, no_crunch):
    """Print the Dockerfile for TAG."""
    config = ctx.obj['config']
    crunch = config.crunch and not no_crunch
    for distro, arch, version in supported_cells(config.distros, config.arches, config.versions):
        if cell_tag(distro, arch, version) == tag:
            _, dockerfile = generate(distro, arch, version, crunch=crunch)
            click.echo(render(dockerfile))
            return
    _fail(ValueError(f"Unknown tag: {tag}"))


@cli.command(name='generate')
@click.option('--out', '-o', default='dockerfiles', help='Output directory, or git repository with --git-branches')
@click.option('--git-branches', is_flag=True, help='Commit each Dockerfile to a branch named after its tag')
@click.option('--base-branch', default='master', help='Branch the per-tag branches start from')
@click.option('--all-compilers', is_flag=True, help='One image per distribution and architecture holding every compiler')
@click.option('--no-crunch', is_flag=True, help='Keep one layer per RUN')
@click.pass_context
def generate_cmd(ctx, out, git_branches, base_branch, all_compilers, no_crunch):
    """Write every supported Dockerfile."""
    config = ctx.obj['config']
    crunch = config.crunch and not no_crunch
    try:
        build = generate_all_compilers_matrix if all_compilers else generate_matrix
        matrix = build(config.distros, config.arches, config.versions)
    except ValueError as e:
        _fail(e)
    if git_branches:
        written = generate_dockerfiles_in_git_branches(matrix, out, crunch=crunch, base_branch=base_branch)
    else:
        written = generate_dockerfiles(matrix, out, crunch=crunch)
    click.echo(f"Generated {len(written)} Dockerfiles in {out}")


@cli.command()
@click.option('--repo', default=None, help='Image repository, defaults to the config value')
@click.option('--distro', 'distro', required=True, type=DISTRO_CHOICE)
@click.option('--ocaml-version', 'version', required=True)
@click.pass_context
def manifest(ctx, repo, distro, version):
    """Print a manifest-tool spec joining the per-arch images."""
    config = ctx.obj['config']
    try:
        click.echo(manifest_for(repo or config.repo, Distro(distro), OCamlVersion.parse(version), config.arches), nl=False)
    except ValueError as e:
        _fail(e)


def main():
    """
    Main entry point for the CLI.
    """
    load_dotenv()
    cli(obj={}, auto_envvar_prefix="DOCKFORGE")


if __name__ == '__main__':
    main()
