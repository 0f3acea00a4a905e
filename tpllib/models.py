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

"""Core data types: duplicate policy and the :class:`Template` entity.

A template body is plain text rendered with Jinja2.  Slots are referenced
as ``{{ name }}``; other templates from the same library are pulled in with
``{{ template("header", title=title) }}``.  The engine never looks inside a
body itself, it only calls :meth:`Template.render`.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Any, Protocol

from jinja2 import Environment

TEMPLATE_NAME_PATTERN = r"[-0-9A-Za-z_.]+"
_NAME_RE = re.compile(TEMPLATE_NAME_PATTERN)

# Name under which the nested-template helper is exposed to bodies
INCLUDE_FUNCTION = "template"

_ENV = Environment(
    keep_trailing_newline=True,
    autoescape=False,  # Templates are plain text, not HTML
)


class DuplicatePolicy(Enum):
    """What to do when a template name is already in the library."""

    ERROR = "error"
    OVERWRITE = "overwrite"
    IGNORE = "ignore"


class Renderer(Protocol):
    """Anything a template can call back into for nested renders."""

    def render(self, name: str, slots: Mapping[str, Any] | None = None) -> str:
        ...


def is_valid_name(name: str) -> bool:
    """Check *name* against the template name grammar."""
    return _NAME_RE.fullmatch(name) is not None


@dataclass(frozen=True)
class Template:
    """An immutable named template body."""

    name: str
    body: str = field(repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not is_valid_name(self.name):
            raise ValueError(
                f"Invalid template name {self.name!r}; "
                f"must match {TEMPLATE_NAME_PATTERN}"
            )
        if not isinstance(self.body, str):
            raise TypeError(f"Template body must be str, got {type(self.body).__name__}")

    @cached_property
    def _compiled(self):
        return _ENV.from_string(self.body)

    def render(self, slots: Mapping[str, Any] | None, renderer: Renderer) -> str:
        """Render the body with *slots*, resolving nested templates via *renderer*."""

        def include(
            name: str, nested: Mapping[str, Any] | None = None, /, **kwargs: Any,
        ) -> str:
            merged = dict(nested or {})
            merged.update(kwargs)
            return renderer.render(name, merged)

        context = dict(slots or {})
        context[INCLUDE_FUNCTION] = include
        return self._compiled.render(context)
