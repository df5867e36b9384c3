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

"""Release mode decision.

Turns the requested build kind, the CI trigger, available credentials and
branch policy into one release action plus the draft permission. Every
check is a one-shot validation against facts gathered beforehand; the
first failing check raises a ReleaseModeError.

Decision steps:
1. `run` requires a hosting token and a CI context, and is classified into
   publish or build from the trigger.
2. A draft is wanted for `run`/`build` when a hosting token is present and
   drafts for builds are not disabled.
3. Branch and commit are required to publish to the hosting service, to
   create a draft, or for any `run`.
4. Publishing to the hosting service requires a token, validates the branch
   and allows a draft. Publishing to the registry requires a token when
   packable projects exist.
5. A wanted draft is allowed when the branch is an allowed release branch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from relstack.core.exceptions import (
    BranchNotAllowedError,
    InvalidCommandContextError,
    MissingCredentialError,
    MissingGitContextError,
)
from relstack.release.actions import BuildKind, ReleaseAction
from relstack.release.classifier import classify_trigger

if TYPE_CHECKING:
    from relstack.config import ReleaserConfig
    from relstack.release.ci import CIContext
    from relstack.release.git_info import GitInformation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    """Tokens passed on the command line. Only their presence matters here."""

    github_token: str = field(default="", repr=False)
    github_token_extra: str = field(default="", repr=False)
    nuget_token: str = field(default="", repr=False)

    @property
    def has_hosting_token(self) -> bool:
        return bool(self.github_token)

    @property
    def has_extra_hosting_token(self) -> bool:
        return bool(self.github_token_extra)

    @property
    def has_registry_token(self) -> bool:
        return bool(self.nuget_token)


@dataclass(frozen=True)
class ReleaseModeInputs:
    """Everything the release mode decision depends on.

    Attributes:
        requested: Build kind requested by the command.
        ci: CI trigger context, None outside CI.
        hosting_publish: Whether releases are published to the hosting service.
        registry_publish: Whether packages are pushed to the package registry.
        disable_draft_for_build: Changelog policy disabling drafts on builds.
        branches: Branches allowed to publish.
        version_prefix: Prefix of release tags, used as a regex fragment.
        has_hosting_token: A primary hosting token was supplied.
        has_extra_hosting_token: An extra hosting token was supplied.
        has_registry_token: A package registry token was supplied.
        packable_count: Number of packable projects loaded.
        provider: Hosting service name, for messages.
        repository_hint: Where the git repository was searched, for messages.
    """

    requested: BuildKind
    ci: CIContext | None = None
    hosting_publish: bool = True
    registry_publish: bool = True
    disable_draft_for_build: bool = False
    branches: tuple[str, ...] = ("main",)
    version_prefix: str = "v"
    has_hosting_token: bool = False
    has_extra_hosting_token: bool = False
    has_registry_token: bool = False
    packable_count: int = 0
    provider: str = "GitHub"
    repository_hint: str = ""

    @classmethod
    def from_config(
        cls,
        config: ReleaserConfig,
        requested: BuildKind,
        credentials: Credentials,
        ci: CIContext | None,
        packable_count: int,
    ) -> ReleaseModeInputs:
        return cls(
            requested=requested,
            ci=ci,
            hosting_publish=config.github.publish,
            registry_publish=config.nuget.publish,
            disable_draft_for_build=config.changelog.disable_draft_for_build,
            branches=config.github.branches,
            version_prefix=config.github.version_prefix,
            has_hosting_token=credentials.has_hosting_token,
            has_extra_hosting_token=credentials.has_extra_hosting_token,
            has_registry_token=credentials.has_registry_token,
            packable_count=packable_count,
            provider=config.github.provider,
            repository_hint=str(config.root),
        )


@dataclass(frozen=True)
class ReleaseDecision:
    """Outcome of the release mode decision. `action` is never AUTO_DETECT."""

    action: ReleaseAction
    allow_publish_draft: bool = False
    validate_branch_name: bool = False
    requires_git_information: bool = False

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for logging/summary."""
        return {
            "action": self.action.value,
            "allow_publish_draft": self.allow_publish_draft,
            "validate_branch_name": self.validate_branch_name,
            "requires_git_information": self.requires_git_information,
        }


def _resolve_run(inputs: ReleaseModeInputs) -> ReleaseAction:
    if not inputs.has_hosting_token:
        raise InvalidCommandContextError(
            message=f"Missing {inputs.provider} API token. The command `run` is only supported "
            "from a GitHub Action with a valid --github-token."
        )
    if inputs.ci is None:
        raise InvalidCommandContextError(
            message="Invalid usage of command `run`. This command is only supported from a GitHub Action."
        )
    return classify_trigger(inputs.ci, inputs.version_prefix)


def decide_release_mode(
    inputs: ReleaseModeInputs,
    git_information: GitInformation | None,
) -> ReleaseDecision:
    """Decide the release action for a configured run.

    Raises:
        InvalidCommandContextError: `run` without a hosting token or CI context.
        MissingGitContextError: Branch and commit needed but no repository found.
        MissingCredentialError: A token required by the publish target is absent.
        BranchNotAllowedError: Publishing from a branch outside the allow-list.
    """
    requested = inputs.requested
    action = requested.to_action()

    if requested is BuildKind.RUN:
        action = _resolve_run(inputs)

    requires_draft_for_build = (
        requested in (BuildKind.RUN, BuildKind.BUILD)
        and inputs.has_hosting_token
        and not inputs.disable_draft_for_build
    )
    requires_git_information = (
        (requested is BuildKind.PUBLISH and inputs.hosting_publish)
        or requires_draft_for_build
        or requested is BuildKind.RUN
    )

    if requires_git_information and git_information is None:
        where = f" from the folder {inputs.repository_hint}" if inputs.repository_hint else ""
        raise MissingGitContextError(
            message=f"Unable to find a git repository{where}. This is required by the current action."
        )

    validate_branch_name = False
    allow_publish_draft = False

    if action is ReleaseAction.PUBLISH:
        if inputs.hosting_publish:
            if not inputs.has_hosting_token:
                raise MissingCredentialError(
                    message=f"Publishing to {inputs.provider} requires to pass --github-token"
                )
            validate_branch_name = True
            allow_publish_draft = True

        if inputs.registry_publish and not inputs.has_registry_token and inputs.packable_count > 0:
            raise MissingCredentialError(message="Publishing to NuGet requires to pass --nuget-token")

    if validate_branch_name:
        assert git_information is not None
        branch = git_information.branch_name
        if branch not in inputs.branches:
            raise BranchNotAllowedError(
                message=f"The current git branch `{branch}` is not listed in the authorized release branches "
                f"from the configuration `github.branches = [{', '.join(inputs.branches)}]`",
                branch=branch,
                allowed=list(inputs.branches),
            )

    # Drafts are only created from release branches
    if requires_draft_for_build:
        assert git_information is not None
        if git_information.branch_name in inputs.branches:
            allow_publish_draft = True

    decision = ReleaseDecision(
        action=action,
        allow_publish_draft=allow_publish_draft,
        validate_branch_name=validate_branch_name,
        requires_git_information=requires_git_information,
    )
    logger.info("Release mode: %s (draft allowed: %s)", action.value, allow_publish_draft)
    return decision
