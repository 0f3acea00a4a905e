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

"""Exception hierarchy for tpllib.

Every failure raised by the parser, library and renderer derives from
:class:`TemplateError`, so callers can catch the whole family at once.
"""

from __future__ import annotations


class TemplateError(Exception):
    """Base class for all tpllib errors."""


class TemplateParseError(TemplateError):
    """A template block was opened but never closed."""

    def __init__(self, name: str, line: int) -> None:
        self.name = name
        self.line = line
        super().__init__(
            f'No "ENDTEMPLATE" found for {name!r} (started on line {line})'
        )


class DuplicateTemplateError(TemplateError):
    """A template name collided under the ``ERROR`` duplicate policy."""

    def __init__(self, name: str, line: int | None = None) -> None:
        self.name = name
        self.line = line
        if line is None:
            msg = f"Template {name!r} already exists in library"
        else:
            msg = f"Template {name!r} on line {line} already exists in library"
        super().__init__(msg)


class MissingTemplateError(TemplateError, KeyError):
    """A template name is not present in the library."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Template {name!r} not found in template library")

    def __str__(self) -> str:
        # KeyError would repr() the message otherwise
        return self.args[0]


class RenderCycleError(TemplateError):
    """A template (directly or transitively) tried to render itself."""

    def __init__(self, name: str, chain: tuple[str, ...]) -> None:
        self.name = name
        self.chain = tuple(chain)
        path = " -> ".join((*self.chain, name))
        super().__init__(f"Render cycle detected for {name!r}: {path}")
