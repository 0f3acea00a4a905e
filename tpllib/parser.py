# tpllib — named text-template library with memoised rendering
# Copyright (C) 2024-2026 Dr Horst Herb
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Line scanner that recovers named template blocks from raw text.

Template markup::

    <%%STARTTEMPLATE greeting%%>
    Hello, {{ name }}!
    <%%ENDTEMPLATE greeting%%>

Markers may open and close on the same line.  Text outside a block is
ignored.  Inside a block, only the end marker for the *same* name closes
it; anything else (including other start markers) is body text.

The scanner is a generator so that each block can be committed to the
library before the next start marker is examined.  This is what lets a
second block with the same name in one input be detected as a duplicate.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from tpllib.exceptions import DuplicateTemplateError, TemplateParseError
from tpllib.models import TEMPLATE_NAME_PATTERN, DuplicatePolicy

logger = logging.getLogger(__name__)

_START_RE = re.compile(rf"<%%STARTTEMPLATE ({TEMPLATE_NAME_PATTERN})%%>")


def start_marker(name: str) -> str:
    return f"<%%STARTTEMPLATE {name}%%>"


def end_marker(name: str) -> str:
    return f"<%%ENDTEMPLATE {name}%%>"


@dataclass(frozen=True)
class TemplateBlock:
    """A finished block: template name, raw body and 1-based start line."""

    name: str
    body: str
    line: int


def _iter_lines(text: str) -> Iterator[str]:
    """Yield lines split on ``\\n`` only, each keeping its terminator."""
    lines = text.split("\n")
    for line in lines[:-1]:
        yield line + "\n"
    if lines[-1]:
        yield lines[-1]


def scan_blocks(
    text: str,
    dupes: DuplicatePolicy = DuplicatePolicy.ERROR,
    exists: Callable[[str], bool] | None = None,
) -> Iterator[TemplateBlock]:
    """Yield every template block found in *text*.

    *exists* is consulted each time a start marker is seen.  For a name it
    reports as already known, *dupes* decides: ``ERROR`` raises
    :class:`DuplicateTemplateError` with the marker's line, ``IGNORE``
    consumes the block silently, ``OVERWRITE`` yields it as normal.

    Raises :class:`TemplateParseError` if the input ends inside a block.
    """
    if exists is None:
        exists = lambda name: False  # noqa: E731

    name: str | None = None
    start_line = 0
    skipping = False
    fragments: list[str] = []

    for lineno, line in enumerate(_iter_lines(text), start=1):
        if name is None:
            match = _START_RE.search(line)
            if match is None:
                continue

            name = match.group(1)
            start_line = lineno
            fragments = []
            if exists(name):
                if dupes is DuplicatePolicy.ERROR:
                    raise DuplicateTemplateError(name, lineno)
                skipping = dupes is DuplicatePolicy.IGNORE

            # body starts after the last start marker for this name on the line
            marker = start_marker(name)
            rest = line[line.rfind(marker) + len(marker):]
            end = rest.find(end_marker(name))
            if end >= 0:
                # single-line block
                fragments.append(rest[:end])
            else:
                if rest.strip():
                    fragments.append(rest)
                continue
        else:
            end = line.find(end_marker(name))
            if end < 0:
                fragments.append(line)
                continue
            fragments.append(line[:end])

        if skipping:
            logger.debug("Skipping duplicate template %r (line %d)", name, start_line)
        else:
            logger.debug("Found template %r (line %d)", name, start_line)
            yield TemplateBlock(name=name, body="".join(fragments), line=start_line)

        name = None
        skipping = False
        fragments = []

    if name is not None:
        raise TemplateParseError(name, start_line)
