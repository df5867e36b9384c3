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

"""Run context manager for Relstack CLI runs.

Each command run gets its own directory holding a JSONL event log, the
Python log output of the run, and a summary.json written on exit. Activity
lines meant for the user are written to the real terminal (sys.__stdout__)
so they stay visible even when stdout is captured.
"""

from __future__ import annotations

import contextlib
import datetime
import json
import logging
import sys
import uuid
from pathlib import Path
from typing import Any

RUNS_DIRNAME = Path(".relstack") / "runs"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class RunContext:
    """Context manager that creates a run directory and records run events.

    Usage:
        with RunContext("publish", root) as run:
            run.log_event({"event": "load.start"})
            ...
    """

    def __init__(self, command: str, root: Path) -> None:
        self.command = command
        self.runs_root = root / RUNS_DIRNAME
        now_utc = datetime.datetime.now(datetime.UTC)
        self.run_id = now_utc.strftime("%Y%m%dT%H%M%SZ") + f"-{command}-" + uuid.uuid4().hex[:8]
        self.run_path = self.runs_root / self.run_id
        self.logs_path = self.run_path / "logs"
        self.events_file: Any | None = None
        self._log_handler: logging.Handler | None = None
        self.summary: dict[str, Any] = {"command": command, "start_utc": now_utc.isoformat()}

    def __enter__(self) -> RunContext:
        self.logs_path.mkdir(parents=True, exist_ok=True)
        self.events_file = (self.logs_path / "events.jsonl").open("a", encoding="utf-8")

        # Library modules log through the standard logging tree; capture it per run.
        handler = logging.FileHandler(self.logs_path / "relstack.log", encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.setLevel(logging.DEBUG)
        root_logger = logging.getLogger("relstack")
        root_logger.addHandler(handler)
        if root_logger.level == logging.NOTSET or root_logger.level > logging.DEBUG:
            root_logger.setLevel(logging.DEBUG)
        self._log_handler = handler

        self.log_event({"event": "run.start", "run_id": self.run_id})
        return self

    def log_event(self, event: dict[str, Any]) -> None:
        """Write a JSONL event with a timestamp."""
        if self.events_file is None:  # pragma: no cover
            return
        payload = {"timestamp": datetime.datetime.now(datetime.UTC).isoformat(), **event}
        self.events_file.write(json.dumps(payload, default=str) + "\n")
        self.events_file.flush()

    def write_summary(self, **kwargs: Any) -> None:
        self.summary.update(kwargs)
        (self.run_path / "summary.json").write_text(json.dumps(self.summary, indent=2, default=str))

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: object,
    ) -> bool | None:
        status = self.summary.get("status", "success")
        if exc is not None:
            status = "failed"
            self.summary["error"] = str(exc)

        self.summary["end_utc"] = datetime.datetime.now(datetime.UTC).isoformat()
        self.summary["status"] = status
        self.write_summary()

        with contextlib.suppress(Exception):
            self.log_event({"event": "run.end", "status": status})

        try:
            if self.events_file:
                self.events_file.close()
        finally:
            if self._log_handler is not None:
                logging.getLogger("relstack").removeHandler(self._log_handler)
                self._log_handler.close()

        if status != "success":
            with contextlib.suppress(Exception):
                print(f"[report] Logs: {self.run_path}", file=sys.__stdout__)

        # Do not suppress exceptions
        return None


# Activity lines go to the real terminal so they remain visible when stdout
# is captured by a test runner or redirected by a caller.

def activity(phase: str, description: str) -> None:
    with contextlib.suppress(Exception):
        print(f"[{phase}] {description}", file=sys.__stdout__, flush=True)
