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

"""CLI application definition for Relstack."""

from __future__ import annotations

from typer import Typer

from relstack.commands.new import new
from relstack.commands.release import build, publish, run

app: Typer = Typer(
    name="relstack",
    help="A tool for releasing multi-project .NET solutions to GitHub and NuGet.",
    add_completion=False,
)

# Register commands
app.command(name="new")(new)
app.command(name="build")(build)
app.command(name="publish")(publish)
app.command(name="run")(run)
