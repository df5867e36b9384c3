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

"""Requested build kinds and resolved release actions."""

from __future__ import annotations

from enum import Enum


class BuildKind(Enum):
    """Build kind requested by the command line."""

    NONE = "none"
    PUBLISH = "publish"
    BUILD = "build"
    RUN = "run"

    def to_action(self) -> ReleaseAction:
        """Map the request onto a release action.

        `RUN` maps to `AUTO_DETECT`, which must be classified before it can
        be stored on a BuildInformation.
        """
        return {
            BuildKind.NONE: ReleaseAction.UNSET,
            BuildKind.PUBLISH: ReleaseAction.PUBLISH,
            BuildKind.BUILD: ReleaseAction.BUILD,
            BuildKind.RUN: ReleaseAction.AUTO_DETECT,
        }[self]


class ReleaseAction(Enum):
    """Action recorded on a BuildInformation."""

    UNSET = "unset"
    PUBLISH = "publish"
    BUILD = "build"
    AUTO_DETECT = "auto-detect"

    @property
    def is_terminal(self) -> bool:
        return self is not ReleaseAction.AUTO_DETECT

    def __str__(self) -> str:
        return self.value
