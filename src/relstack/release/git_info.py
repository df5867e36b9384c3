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

"""Branch name and commit of the repository holding the release configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import git

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

DETACHED_HEAD = "HEAD"


@dataclass(frozen=True)
class GitInformation:
    branch_name: str
    commit_sha: str


def _branch_containing_head(repo: git.Repo, branches: Sequence[str]) -> str | None:
    """Return the first allowed branch whose local or origin ref contains HEAD."""
    head = repo.head.commit
    local = {ref.name: ref for ref in repo.heads}
    remote: dict[str, git.Reference] = {}
    try:
        remote = {ref.name.replace("origin/", "", 1): ref for ref in repo.remotes.origin.refs}
    except (AttributeError, IndexError, ValueError):
        pass  # No origin remote

    for branch in branches:
        for refs in (local, remote):
            ref = refs.get(branch)
            if ref is None:
                continue
            try:
                if repo.is_ancestor(head, ref.commit):
                    return branch
            except git.GitCommandError:
                continue
    return None


def get_git_information(path: Path, branches: Sequence[str] = ()) -> GitInformation | None:
    """Resolve the current branch and commit for the repository containing `path`.

    Parent folders are searched for the repository. On a detached HEAD (the
    usual state of a CI checkout) the first of `branches` containing the
    head commit is reported, or `HEAD` when none does.

    Returns:
        GitInformation, or None if no repository or commit is found.
    """
    search_from = path if path.is_dir() else path.parent
    try:
        repo = git.Repo(search_from, search_parent_directories=True)
    except (git.InvalidGitRepositoryError, git.NoSuchPathError):
        logger.debug("No git repository found from %s", search_from)
        return None

    try:
        with repo:
            try:
                commit_sha = repo.head.commit.hexsha
            except ValueError:
                logger.debug("Repository %s has no commit yet", repo.working_dir)
                return None

            if repo.head.is_detached:
                branch_name = _branch_containing_head(repo, branches) or DETACHED_HEAD
            else:
                branch_name = repo.active_branch.name
    except git.GitCommandError as e:
        logger.warning("Unable to read git information from %s: %s", search_from, e)
        return None

    logger.debug("Git branch %s at %s", branch_name, commit_sha)
    return GitInformation(branch_name=branch_name, commit_sha=commit_sha)
