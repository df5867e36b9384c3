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

"""Relstack-specific exception types with associated exit codes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from relstack.core.diagnostics import Diagnostic


@dataclass
class RelstackError(Exception):
    """Base class for Relstack errors with an exit code."""

    message: str = "An error occurred"
    exit_code: int = field(default=1)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.message} (exit {self.exit_code})"


@dataclass
class ConfigError(RelstackError):
    exit_code: int = field(default=1)


@dataclass
class ProjectLoadError(RelstackError):
    """Error raised when discovery or metadata extraction recorded errors."""

    exit_code: int = field(default=2)
    diagnostics: list[Diagnostic] = field(default_factory=list)


@dataclass
class UnresolvedDependencyError(RelstackError):
    """Error raised when project references cannot be ordered."""

    exit_code: int = field(default=3)
    remaining: list[str] = field(default_factory=list)


@dataclass
class VersionError(RelstackError):
    """Error raised when packable projects do not agree on a version."""

    exit_code: int = field(default=4)
    diagnostics: list[Diagnostic] = field(default_factory=list)


@dataclass
class ReleaseModeError(RelstackError):
    """Base class for fatal release mode decisions."""

    exit_code: int = field(default=5)


@dataclass
class MissingCredentialError(ReleaseModeError):
    pass


@dataclass
class BranchNotAllowedError(ReleaseModeError):
    branch: str = ""
    allowed: list[str] = field(default_factory=list)


@dataclass
class MissingGitContextError(ReleaseModeError):
    pass


@dataclass
class InvalidCommandContextError(ReleaseModeError):
    pass


@dataclass
class PublishProfileError(RelstackError):
    """Error raised when web app publish profiles cannot be assigned."""

    exit_code: int = field(default=6)
    diagnostics: list[Diagnostic] = field(default_factory=list)
