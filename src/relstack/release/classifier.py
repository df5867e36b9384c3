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

"""Classification of an automatic CI run into publish or build."""

from __future__ import annotations

import logging
import re

from relstack.release.actions import ReleaseAction
from relstack.release.ci import CIContext, RefKind

logger = logging.getLogger(__name__)

PUSH_EVENT = "push"


def is_release_tag(ref_name: str, version_prefix: str) -> bool:
    """Return True if `ref_name` starts with `<prefix><digits>(.<digits>)*`.

    The prefix is inserted in the pattern verbatim, and only the start of
    the tag has to match: `v1.2.3-rc1` is a release tag for prefix `v`.
    """
    return re.match(rf"^{version_prefix}\d+(\.\d+)*", ref_name) is not None


def classify_trigger(ci: CIContext, version_prefix: str) -> ReleaseAction:
    """Return PUBLISH for a pushed release tag, BUILD for anything else."""
    if ci.event_name == PUSH_EVENT and ci.ref_kind is RefKind.TAG:
        if is_release_tag(ci.ref_name, version_prefix):
            logger.info("The tag `%s` is identified as a release tag. Publish mode selected.", ci.ref_name)
            return ReleaseAction.PUBLISH
        logger.warning("The tag `%s` is not identified as a release tag. Build only mode selected.", ci.ref_name)
        return ReleaseAction.BUILD

    if ci.event_name == PUSH_EVENT:
        logger.info(
            "The trigger event is `%s` and the branch `%s`. Build only mode selected.",
            ci.event_name,
            ci.ref_name,
        )
    else:
        logger.info("The trigger event is `%s`. Build only mode selected.", ci.event_name)
    return ReleaseAction.BUILD
