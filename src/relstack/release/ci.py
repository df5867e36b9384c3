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

"""CI trigger context, read from the GitHub Actions environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum


class RefKind(Enum):
    TAG = "tag"
    BRANCH = "branch"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str) -> RefKind:
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class CIContext:
    """What triggered the current CI run."""

    event_name: str
    ref_kind: RefKind
    ref_name: str

    def __str__(self) -> str:
        return f"event: {self.event_name}, {self.ref_kind.value}: {self.ref_name}"


def get_ci_context(environ: Mapping[str, str] | None = None) -> CIContext | None:
    """Return the GitHub Actions trigger context, or None outside of GitHub Actions."""
    env = os.environ if environ is None else environ
    if env.get("GITHUB_ACTIONS", "").lower() != "true":
        return None

    return CIContext(
        event_name=env.get("GITHUB_EVENT_NAME", ""),
        ref_kind=RefKind.parse(env.get("GITHUB_REF_TYPE", "")),
        ref_name=env.get("GITHUB_REF_NAME", ""),
    )
