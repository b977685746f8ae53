"""
Command line interface for ghcl (Typer).

    ghcl user/repo [CLONE_PATH] [options]
"""

from pathlib import Path
from typing import Optional

import typer

from ..infrastructure.config_loader import CliFlags, load_options
from ..infrastructure.error_handler import GhclError, StageError, iter_causes
from ..models import GitProtocol, Service
from .api import ForkCloner


EXIT_FAILURE = 2

app = typer.Typer(
    help="Automatically forks and clones a GitHub repository.",
    add_completion=False,
)


def prompt_for(text: str, secure: bool) -> str:
    return typer.prompt(text, hide_input=secure, err=True)


def render_error(error: BaseException) -> None:
    """Print an error and its causes, outermost first, to stderr."""

    for index, cause in enumerate(iter_causes(error)):
        label = "Error:    " if index == 0 else "caused by:"
        message = cause.message if isinstance(cause, GhclError) else str(cause)
        typer.echo(f"{label} {message}", err=True)


@app.command()
def main(
    repository: str = typer.Argument(..., metavar="REPOSITORY", help="Repository to fork and clone"),
    clone_path: Optional[Path] = typer.Argument(
        None, metavar="CLONE_PATH",
        help="Where to clone the repository (defaults to the name of the repo)",
    ),
    config: Optional[Path] = typer.Option(None, "--config", "-c", metavar="FILE", help="Sets a custom config file"),
    organization: Optional[str] = typer.Option(None, "--organization", "-o", help="Fork into an organization"),
    username: Optional[str] = typer.Option(None, "--username", "-u", help="Your username"),
    password: Optional[str] = typer.Option(
        None, "--password", "-p",
        help="Your password (insecure: prefer a personal access token in your config, or the prompt)",
    ),
    fork_timeout: Optional[int] = typer.Option(
        None, "--fork-timeout", min=0, metavar="TIMEOUT",
        help="The maximum timeout for the fork creation in seconds (default: 30)",
    ),
    track_upstream: Optional[bool] = typer.Option(
        None, "--track-upstream/--no-track-upstream",
        help="Set the default branch to track upstream (default, implies --setup-upstream)",
    ),
    setup_upstream: bool = typer.Option(False, "--setup-upstream", help="Set up an upstream remote (default)"),
    no_upstream: bool = typer.Option(
        False, "--no-upstream", help="Don't set up an upstream remote (implies --no-track-upstream)",
    ),
    remote_name: Optional[str] = typer.Option(
        None, "--remote-name", help='The name of the upstream remote to create (default: "upstream")',
    ),
    origin_protocol: Optional[GitProtocol] = typer.Option(
        None, "--origin-protocol", case_sensitive=False,
        help="The git protocol to use for the origin (default: ssh)",
    ),
    upstream_protocol: Optional[GitProtocol] = typer.Option(
        None, "--upstream-protocol", case_sensitive=False,
        help="The git protocol to use for the upstream (default: https)",
    ),
    default_service: Optional[Service] = typer.Option(
        None, "--default-service", "-s", case_sensitive=False,
        help="The service to be used if the repository is in the form user/repo",
    ),
    quiet: Optional[bool] = typer.Option(
        None, "--quiet/--no-quiet", "-q", help="Don't output status messages",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug details"),
):
    """Fork REPOSITORY on GitHub and clone the fork locally."""

    flags = CliFlags(
        repository=repository,
        clone_path=clone_path,
        config_path=config,
        organization=organization,
        username=username,
        password=password,
        fork_timeout=fork_timeout,
        track_upstream=track_upstream,
        setup_upstream=setup_upstream,
        no_upstream=no_upstream,
        remote_name=remote_name,
        origin_protocol=origin_protocol,
        upstream_protocol=upstream_protocol,
        default_service=default_service,
        quiet=quiet,
    )

    try:
        try:
            options = load_options(flags, prompt_for)
        except GhclError as e:
            raise StageError("Failed to get options", e) from e
        ForkCloner(verbose=verbose).run(options)
    except GhclError as e:
        render_error(e)
        raise typer.Exit(code=EXIT_FAILURE)


if __name__ == "__main__":
    app()
