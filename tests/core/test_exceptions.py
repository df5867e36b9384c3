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

"""Tests for relstack.core.exceptions module."""

from __future__ import annotations

import pytest

from relstack.core import exceptions
from relstack.core.diagnostics import Diagnostic, DiagnosticKind


class TestRelstackError:
    """Tests for RelstackError base class."""

    def test_default_message(self) -> None:
        error = exceptions.RelstackError()
        assert error.message == "An error occurred"

    def test_default_exit_code(self) -> None:
        error = exceptions.RelstackError()
        assert error.exit_code == 1

    def test_can_be_raised_and_caught(self) -> None:
        with pytest.raises(exceptions.RelstackError) as exc_info:
            raise exceptions.ConfigError(message="bad config")
        assert exc_info.value.message == "bad config"


class TestExitCodes:
    """Each error kind maps onto a distinct exit code."""

    @pytest.mark.parametrize(
        ("error_type", "exit_code"),
        [
            (exceptions.ConfigError, 1),
            (exceptions.ProjectLoadError, 2),
            (exceptions.UnresolvedDependencyError, 3),
            (exceptions.VersionError, 4),
            (exceptions.ReleaseModeError, 5),
            (exceptions.MissingCredentialError, 5),
            (exceptions.BranchNotAllowedError, 5),
            (exceptions.MissingGitContextError, 5),
            (exceptions.InvalidCommandContextError, 5),
            (exceptions.PublishProfileError, 6),
        ],
    )
    def test_exit_code(self, error_type: type[exceptions.RelstackError], exit_code: int) -> None:
        assert error_type(message="x").exit_code == exit_code

    def test_release_mode_errors_share_base(self) -> None:
        for error_type in (
            exceptions.MissingCredentialError,
            exceptions.BranchNotAllowedError,
            exceptions.MissingGitContextError,
            exceptions.InvalidCommandContextError,
        ):
            assert issubclass(error_type, exceptions.ReleaseModeError)


class TestErrorPayloads:
    """Tests for the extra fields carried by errors."""

    def test_project_load_error_carries_diagnostics(self) -> None:
        diagnostic = Diagnostic(DiagnosticKind.EXTRACTION_FAILURE, "boom", "A.csproj")
        error = exceptions.ProjectLoadError(message="1 error(s)", diagnostics=[diagnostic])
        assert error.diagnostics == [diagnostic]

    def test_unresolved_dependency_error_carries_remaining(self) -> None:
        error = exceptions.UnresolvedDependencyError(message="cycle", remaining=["A", "B"])
        assert error.remaining == ["A", "B"]

    def test_branch_not_allowed_error_carries_branch(self) -> None:
        error = exceptions.BranchNotAllowedError(message="no", branch="dev", allowed=["main"])
        assert error.branch == "dev"
        assert error.allowed == ["main"]

    def test_diagnostics_default_to_empty(self) -> None:
        assert exceptions.VersionError(message="x").diagnostics == []
        assert exceptions.PublishProfileError(message="x").diagnostics == []
