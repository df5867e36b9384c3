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

"""Release configuration: from a config file to a BuildInformation.

Steps, in order: CI detection, project loading, version verification,
publish profile assignment, git resolution and release mode decision. Any
failing step raises a RelstackError and no BuildInformation is produced.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from relstack.core.diagnostics import Diagnostics
from relstack.core.exceptions import PublishProfileError, VersionError
from relstack.core.run import activity
from relstack.msbuild.extractor import DotnetMSBuildExtractor, MetadataExtractor
from relstack.planning.loader import LoadedProjects, ProjectGraphLoader
from relstack.planning.profiles import assign_web_app_profiles
from relstack.planning.versions import VersionReport, verify_versions
from relstack.release.actions import BuildKind
from relstack.release.build_info import BuildInformation, BuildInformationBuilder
from relstack.release.ci import CIContext, get_ci_context
from relstack.release.git_info import GitInformation, get_git_information
from relstack.release.mode import Credentials, ReleaseModeInputs, decide_release_mode

if TYPE_CHECKING:
    from relstack.config import ReleaserConfig
    from relstack.core.run import RunContext
    from relstack.core.spinner import PhaseProgress

GitResolver = Callable[[Path, Sequence[str]], GitInformation | None]
ProjectsLoadedCallback = Callable[[LoadedProjects, VersionReport], None]


@dataclass(frozen=True)
class ReleaseRequest:
    """What the command line asked for.

    Attributes:
        build_kind: Requested build kind.
        credentials: Hosting and registry tokens.
        web_app_profiles: `<ProjectName>=<PublishProfile>` entries.
    """

    build_kind: BuildKind
    credentials: Credentials = field(default_factory=Credentials)
    web_app_profiles: tuple[str, ...] = ()


@dataclass
class ConfiguredRelease:
    build_information: BuildInformation
    version_report: VersionReport
    ci: CIContext | None = None


def _log(run: RunContext | None, event: dict) -> None:
    if run is not None:
        run.log_event(event)


def configure_release(
    config: ReleaserConfig,
    request: ReleaseRequest,
    extractor: MetadataExtractor | None = None,
    *,
    run: RunContext | None = None,
    ci_detector: Callable[[], CIContext | None] = get_ci_context,
    git_resolver: GitResolver = get_git_information,
    on_projects_loaded: ProjectsLoadedCallback | None = None,
    progress: PhaseProgress | None = None,
) -> ConfiguredRelease:
    """Configure a release and return its BuildInformation.

    Args:
        config: Loaded release configuration.
        request: Requested build kind, tokens and publish profiles.
        extractor: Metadata extractor, `dotnet msbuild` by default.
        run: RunContext receiving structured events.
        ci_detector: Returns the CI trigger context, None outside CI.
        git_resolver: Resolves branch and commit from the config path.
        on_projects_loaded: Called with the loaded projects and version
            report before any verification error is raised.
        progress: Reports the loader phases on the terminal.

    Raises:
        RelstackError: On the first failing step.
    """
    ci_context = ci_detector()
    if ci_context is not None:
        activity("configure", f"Running from GitHub: {ci_context}")
        _log(run, {"event": "configure.ci", "ci": str(ci_context)})

    diagnostics = Diagnostics()
    if extractor is None:
        extractor = DotnetMSBuildExtractor(configuration=config.msbuild.configuration)

    loader = ProjectGraphLoader(
        extractor,
        workers=config.msbuild.parallel,
        restore=config.msbuild.restore,
        default_project_url=config.github.get_url(),
        diagnostics=diagnostics,
        progress=progress,
    )
    _log(run, {"event": "load.start", "inputs": [str(p) for p in config.msbuild.projects]})
    loaded = loader.load(config.msbuild.projects)
    _log(run, {"event": "load.done", "projects": len(loaded.all_projects())})

    report = verify_versions(loaded.collections, diagnostics)
    if on_projects_loaded is not None:
        on_projects_loaded(loaded, report)
    if report.has_errors:
        raise VersionError(
            message=f"{len(report.diagnostics)} version error(s) found",
            diagnostics=list(report.diagnostics),
        )
    _log(run, {"event": "versions.done", "version": report.version})

    if request.web_app_profiles:
        profile_diagnostics = Diagnostics()
        assign_web_app_profiles(loaded.all_projects(), request.web_app_profiles, profile_diagnostics)
        if profile_diagnostics.has_errors:
            raise PublishProfileError(
                message="Invalid web app publish profiles",
                diagnostics=profile_diagnostics.errors,
            )

    git_information = git_resolver(config.path, config.github.branches)
    if git_information is not None:
        _log(run, {"event": "git.info", "branch": git_information.branch_name, "commit": git_information.commit_sha})

    packable_count = sum(1 for p in loaded.all_projects() if p.is_packable)
    inputs = ReleaseModeInputs.from_config(config, request.build_kind, request.credentials, ci_context, packable_count)
    decision = decide_release_mode(inputs, git_information)
    _log(run, {"event": "release.mode", **decision.to_dict()})

    build_information = (
        BuildInformationBuilder(report.version, loaded.collections)
        .with_git_information(git_information)
        .with_decision(decision)
        .build()
    )
    return ConfiguredRelease(build_information=build_information, version_report=report, ci=ci_context)
