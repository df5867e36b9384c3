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

"""Accumulated diagnostics shared between concurrent loading units.

Phases that process independent units (discovery entries, metadata
extraction per project, publish profile entries) record errors here instead
of raising, and the caller checks the collector once the phase has settled.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class DiagnosticKind(Enum):
    """Kinds of errors accumulated while configuring a release.

    One-shot failures (unresolved dependencies, credentials, branch policy,
    git context, command context) are raised as RelstackError subclasses.
    """

    DUPLICATE_INPUT = "duplicate_input"
    EXTRACTION_FAILURE = "extraction_failure"
    UNSUPPORTED_OUTPUT_KIND = "unsupported_output_kind"
    VERSION_MISMATCH = "version_mismatch"
    MISSING_VERSION = "missing_version"
    INVALID_PUBLISH_PROFILE = "invalid_publish_profile"


@dataclass(frozen=True)
class Diagnostic:
    """A single user-visible error."""

    kind: DiagnosticKind
    message: str
    project: str = ""

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for event logging."""
        return {"kind": self.kind.value, "message": self.message, "project": self.project}

    def __str__(self) -> str:
        return self.message


class Diagnostics:
    """Thread-safe, append-only collector of diagnostics.

    The lock is only held while appending or copying, never while the
    caller performs the work that produced the diagnostic.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: list[Diagnostic] = []

    def error(self, kind: DiagnosticKind, message: str, project: str = "") -> Diagnostic:
        diagnostic = Diagnostic(kind=kind, message=message, project=project)
        logger.error(message)
        with self._lock:
            self._items.append(diagnostic)
        return diagnostic

    @property
    def has_errors(self) -> bool:
        with self._lock:
            return bool(self._items)

    @property
    def errors(self) -> list[Diagnostic]:
        with self._lock:
            return list(self._items)

    def of_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        """Return diagnostics of a single kind, in recording order."""
        return [d for d in self.errors if d.kind is kind]

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
