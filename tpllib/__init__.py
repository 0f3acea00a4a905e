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

"""tpllib — named text templates with memoised, composable rendering.

Usage::

    from tpllib import DuplicatePolicy, TemplateEngine

    engine = TemplateEngine()
    engine.parse(
        "<%%STARTTEMPLATE greet%%>Hello, {{ name }}!<%%ENDTEMPLATE greet%%>",
        DuplicatePolicy.ERROR,
    )
    engine.render("greet", {"name": "World"})  # "Hello, World!"
"""

from tpllib.cache import CacheStats, RenderCache, canonicalize, fingerprint
from tpllib.engine import RenderContext, TemplateEngine
from tpllib.exceptions import (
    DuplicateTemplateError,
    MissingTemplateError,
    RenderCycleError,
    TemplateError,
    TemplateParseError,
)
from tpllib.library import Library
from tpllib.models import DuplicatePolicy, Template
from tpllib.parser import TemplateBlock, scan_blocks

__all__ = [
    "CacheStats",
    "DuplicatePolicy",
    "DuplicateTemplateError",
    "Library",
    "MissingTemplateError",
    "RenderCache",
    "RenderContext",
    "RenderCycleError",
    "Template",
    "TemplateBlock",
    "TemplateEngine",
    "TemplateError",
    "TemplateParseError",
    "canonicalize",
    "fingerprint",
    "scan_blocks",
]
