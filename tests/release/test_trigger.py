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

"""Tests for relstack.release.ci and relstack.release.classifier modules."""

from __future__ import annotations

import pytest

from relstack.release.actions import BuildKind, ReleaseAction
from relstack.release.ci import CIContext, RefKind, get_ci_context
from relstack.release.classifier import classify_trigger, is_release_tag


class TestGetCIContext:
    """Tests for get_ci_context function."""

    def test_outside_github_actions(self) -> None:
        assert get_ci_context({}) is None
        assert get_ci_context({"GITHUB_ACTIONS": "false"}) is None

    def test_reads_trigger(self) -> None:
        ci = get_ci_context({
            "GITHUB_ACTIONS": "true",
            "GITHUB_EVENT_NAME": "push",
            "GITHUB_REF_TYPE": "tag",
            "GITHUB_REF_NAME": "v1.2.3",
        })
        assert ci == CIContext(event_name="push", ref_kind=RefKind.TAG, ref_name="v1.2.3")
        assert str(ci) == "event: push, tag: v1.2.3"

    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_ACTIONS", "true")
        monkeypatch.setenv("GITHUB_EVENT_NAME", "pull_request")
        monkeypatch.setenv("GITHUB_REF_TYPE", "branch")
        monkeypatch.setenv("GITHUB_REF_NAME", "42/merge")

        ci = get_ci_context()
        assert ci is not None
        assert ci.ref_kind is RefKind.BRANCH

    def test_unknown_ref_type(self) -> None:
        assert RefKind.parse("") is RefKind.OTHER
        assert RefKind.parse("TAG") is RefKind.TAG


class TestIsReleaseTag:
    """Tests for is_release_tag function."""

    @pytest.mark.parametrize("tag", ["v1", "v1.2.3", "v1.2.3-beta", "v10.0.0.1"])
    def test_release_tags(self, tag: str) -> None:
        assert is_release_tag(tag, "v")

    @pytest.mark.parametrize("tag", ["1.2.3", "release-1.0", "vnext", "x1.2"])
    def test_not_release_tags(self, tag: str) -> None:
        assert not is_release_tag(tag, "v")

    def test_custom_prefix(self) -> None:
        assert is_release_tag("release-2.0", "release-")
        assert is_release_tag("2.0", "")


class TestClassifyTrigger:
    """Tests for classify_trigger function."""

    @pytest.mark.parametrize(
        ("ci", "expected"),
        [
            (CIContext("push", RefKind.TAG, "v1.2.3"), ReleaseAction.PUBLISH),
            (CIContext("push", RefKind.TAG, "v1.2.3-beta"), ReleaseAction.PUBLISH),
            (CIContext("push", RefKind.TAG, "nightly"), ReleaseAction.BUILD),
            (CIContext("push", RefKind.BRANCH, "main"), ReleaseAction.BUILD),
            (CIContext("pull_request", RefKind.BRANCH, "42/merge"), ReleaseAction.BUILD),
            (CIContext("pull_request", RefKind.TAG, "v1.2.3"), ReleaseAction.BUILD),
        ],
    )
    def test_classification(self, ci: CIContext, expected: ReleaseAction) -> None:
        assert classify_trigger(ci, "v") is expected


class TestActions:
    """Tests for BuildKind and ReleaseAction."""

    def test_to_action(self) -> None:
        assert BuildKind.PUBLISH.to_action() is ReleaseAction.PUBLISH
        assert BuildKind.BUILD.to_action() is ReleaseAction.BUILD
        assert BuildKind.RUN.to_action() is ReleaseAction.AUTO_DETECT
        assert BuildKind.NONE.to_action() is ReleaseAction.UNSET

    def test_auto_detect_is_not_terminal(self) -> None:
        assert not ReleaseAction.AUTO_DETECT.is_terminal
        assert ReleaseAction.PUBLISH.is_terminal
        assert str(ReleaseAction.AUTO_DETECT) == "auto-detect"
