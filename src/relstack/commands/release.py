# This file is part of Relstack, a tool for orchestrating multi-project .NET releases.
#
# Copyright 2025 Canonical Ltd.
#
# SPDX-License-Identifier: GPL-3.0-only
#
# Relstack is free software: you can redistribute it and/or modify it under
# the terms of the GNU General Public License version 3, as published by the
# Free Software Foundation.
#
# Relstack is distributed in the hope that it will be useful, but WITHOUT
# ANY WARRANTY; without even the implied warranties of MERCHANTABILITY,
# SATISFACTORY QUALITY, or FITNESS FOR A PARTICULAR PURPOSE. See the GNU
# General Public License for more details.
#
# You should have received a copy of the GNU General Public License along with
# Relstack. If not, see <http://www.gnu.org/licenses/>.

"""Implementation of the `relstack build`, `relstack publish` and `relstack run` commands.

All three configure the release the same way and differ only in the build
kind they request. The configured release is reported on the console;
building, packaging and uploading happen in later stages.

Exit codes:
  0 - Success
  1 - Configuration error
  2 - Project loading failed
  3 - Unresolved project dependencies
  4 - Invalid project versions
  5 - Release mode rejected (credentials, branch, git, command context)
  6 - Invalid web app publish profile
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.markup import escape

from relstack.config import DEFAULT_CONFIG_NAME, load_config
from relstack.core.exceptions import ConfigError, RelstackError
from relstack.core.run import RunContext, activity
from relstack.core.spinner import PhaseProgress
from relstack.release.actions import BuildKind
from relstack.release.configure import ConfiguredRelease, ReleaseRequest, configure_release
from relstack.release.mode import Credentials
from relstack.reports.projects import build_projects_table

if TYPE_CHECKING:
    from relstack.planning.loader import LoadedProjects
    from relstack.planning.versions import VersionReport

EXIT_SUCCESS = 0

CONFIG_ARGUMENT = typer.Argument(Path(DEFAULT_CONFIG_NAME), help="Release configuration file")
GITHUB_TOKEN_OPTION = typer.Option("", "--github-token", envvar="GITHUB_TOKEN", help="GitHub API token")
GITHUB_TOKEN_EXTRA_OPTION = typer.Option(
    "", "--github-token-extra", help="Extra GitHub API token, e.g. to access other repositories"
)
NUGET_TOKEN_OPTION = typer.Option("", "--nuget-token", envvar="NUGET_TOKEN", help="NuGet API token")
WEBAPP_OPTION = typer.Option(
    None, "--publish-webapp", help="Publish profile of a web app project as <ProjectName>=<PublishProfile>"
)
NO_SPINNER_OPTION = typer.Option(False, "--no-spinner", help="Disable the loading progress spinner")


def _report_error(console: Console, run: RunContext | None, error: RelstackError) -> None:
    activity("release", f"ERROR: {error.message}")
    console.print(f"[red]ERROR:[/red] {escape(error.message)}", soft_wrap=True)
    details = getattr(error, "diagnostics", None) or []
    for diagnostic in details:
        console.print(f"  - {diagnostic.message}", markup=False, soft_wrap=True)
    if run is not None:
        run.log_event({
            "event": "release.error",
            "error": type(error).__name__,
            "message": error.message,
            "exit_code": error.exit_code,
            "diagnostics": [d.to_dict() for d in details],
        })
        run.write_summary(status="failed", error=error.message, exit_code=error.exit_code)


def _report_release(console: Console, configured: ConfiguredRelease) -> None:
    info = configured.build_information
    console.print(f"Release version: [bold]{info.version or '(none)'}[/bold]")
    if info.git_information is not None:
        console.print(
            f"Git branch: {info.git_information.branch_name} ({info.git_information.commit_sha[:12]})"
        )
    console.print(f"Release mode: [bold green]{info.action.value}[/bold green]")
    console.print(f"Draft allowed: {'yes' if info.allow_publish_draft else 'no'}")


def run_release(
    kind: BuildKind,
    config_path: Path,
    credentials: Credentials,
    web_app_profiles: list[str] | None = None,
    no_spinner: bool = False,
) -> int:
    """Configure a release for `kind` and report it; return the exit code."""
    console = Console(highlight=False)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        _report_error(console, None, e)
        return e.exit_code

    def on_loaded(loaded: LoadedProjects, report: VersionReport) -> None:
        console.print(build_projects_table(loaded.collections, report))

    with RunContext(kind.value, config.root) as run:
        request = ReleaseRequest(
            build_kind=kind,
            credentials=credentials,
            web_app_profiles=tuple(web_app_profiles or ()),
        )
        try:
            configured = configure_release(
                config,
                request,
                run=run,
                on_projects_loaded=on_loaded,
                progress=PhaseProgress(disable=no_spinner),
            )
        except RelstackError as e:
            _report_error(console, run, e)
            return e.exit_code

        _report_release(console, configured)
        run.write_summary(status="success", exit_code=EXIT_SUCCESS, release=configured.build_information.to_dict())
    return EXIT_SUCCESS


def build(
    config: Path = CONFIG_ARGUMENT,
    github_token: str = GITHUB_TOKEN_OPTION,
    github_token_extra: str = GITHUB_TOKEN_EXTRA_OPTION,
    nuget_token: str = NUGET_TOKEN_OPTION,
    publish_webapp: list[str] = WEBAPP_OPTION,
    no_spinner: bool = NO_SPINNER_OPTION,
) -> None:
    """Build all projects without publishing."""
    credentials = Credentials(github_token, github_token_extra, nuget_token)
    sys.exit(run_release(BuildKind.BUILD, config, credentials, publish_webapp, no_spinner))


def publish(
    config: Path = CONFIG_ARGUMENT,
    github_token: str = GITHUB_TOKEN_OPTION,
    github_token_extra: str = GITHUB_TOKEN_EXTRA_OPTION,
    nuget_token: str = NUGET_TOKEN_OPTION,
    publish_webapp: list[str] = WEBAPP_OPTION,
    no_spinner: bool = NO_SPINNER_OPTION,
) -> None:
    """Build all projects and publish the release."""
    credentials = Credentials(github_token, github_token_extra, nuget_token)
    sys.exit(run_release(BuildKind.PUBLISH, config, credentials, publish_webapp, no_spinner))


def run(
    config: Path = CONFIG_ARGUMENT,
    github_token: str = GITHUB_TOKEN_OPTION,
    github_token_extra: str = GITHUB_TOKEN_EXTRA_OPTION,
    nuget_token: str = NUGET_TOKEN_OPTION,
    publish_webapp: list[str] = WEBAPP_OPTION,
    no_spinner: bool = NO_SPINNER_OPTION,
) -> None:
    """Build, or publish when triggered by a release tag, from a GitHub Action."""
    credentials = Credentials(github_token, github_token_extra, nuget_token)
    sys.exit(run_release(BuildKind.RUN, config, credentials, publish_webapp, no_spinner))
