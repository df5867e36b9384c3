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

"""Per-phase progress of the project loader.

Each loader phase gets its own transient spinner line with a done/total
counter and the project that just finished. Once the phase completes, the
final counter is printed as a plain activity line. Without a TTY only the
final lines are printed. Output goes to the real terminal (sys.__stdout__).
"""

from __future__ import annotations

import contextlib
import sys
import threading
from collections.abc import Callable, Iterator

from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner

from relstack.core.run import activity


def is_tty() -> bool:
    """Return True if the real stdout is a TTY."""
    try:
        if sys.__stdout__ is None:
            return False  # pragma: no cover
        return sys.__stdout__.isatty()
    except Exception:  # pragma: no cover
        return False


class PhaseProgress:
    """Progress reporter shared by the loader phases.

    `advance` callbacks are called from worker threads; the counter and the
    spinner text are updated under a lock.
    """

    def __init__(self, disable: bool = False) -> None:
        self.disable = disable
        self._lock = threading.Lock()

    @contextlib.contextmanager
    def phase(self, name: str, description: str, total: int) -> Iterator[Callable[[str], None]]:
        """Show progress of one phase of `total` units.

        Yields a callback taking the label of each finished unit. The
        completed line is only printed when the block exits normally.
        """
        done = 0

        def render(current: str = "") -> str:
            text = f"[{name}] {description} ({done}/{total})"
            return f"{text} {current}" if current else text

        spinner: Spinner | None = None

        def advance(label: str) -> None:
            nonlocal done
            with self._lock:
                done += 1
                if spinner is not None:
                    spinner.update(text=render(label))

        if self.disable or not is_tty():
            yield advance
        else:
            spinner = Spinner("dots", text=render())
            console = Console(file=sys.__stdout__, force_terminal=True)
            with Live(spinner, console=console, refresh_per_second=12, transient=True):
                yield advance

        activity(name, f"{description} ({done}/{total})")
