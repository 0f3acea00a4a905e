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

"""Name-keyed template store with per-call duplicate handling.

All mutations and reads take the same re-entrant lock, so a parse or merge
is never observed half-way by another thread.  Iteration order is first
insertion order; replacing a template under ``OVERWRITE`` keeps its slot.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator

from tpllib.exceptions import DuplicateTemplateError, MissingTemplateError
from tpllib.models import DuplicatePolicy, Template
from tpllib.parser import scan_blocks

logger = logging.getLogger(__name__)


class Library:
    """Thread-safe mapping of template name to :class:`Template`."""

    def __init__(self) -> None:
        self._templates: dict[str, Template] = {}
        self._lock = threading.RLock()

    def add(
        self, template: Template, dupes: DuplicatePolicy = DuplicatePolicy.ERROR,
    ) -> bool:
        """Add *template*, resolving a name collision according to *dupes*.

        Returns ``True`` if the template was stored, ``False`` if an existing
        entry was kept under ``IGNORE``.
        """
        if not isinstance(dupes, DuplicatePolicy):
            raise TypeError(f"dupes must be a DuplicatePolicy, got {dupes!r}")
        with self._lock:
            if template.name not in self._templates or dupes is DuplicatePolicy.OVERWRITE:
                self._templates[template.name] = template
                return True
            if dupes is DuplicatePolicy.IGNORE:
                logger.debug("Keeping existing template %r", template.name)
                return False
            raise DuplicateTemplateError(template.name)

    def get(self, name: str) -> Template:
        """Return the template called *name*.

        Raises :class:`MissingTemplateError` if it is not registered.
        """
        with self._lock:
            try:
                return self._templates[name]
            except KeyError:
                raise MissingTemplateError(name) from None

    def names(self) -> list[str]:
        """Return all registered names in first-insertion order."""
        with self._lock:
            return list(self._templates)

    def snapshot(self) -> list[Template]:
        """Return a consistent copy of all templates in insertion order."""
        with self._lock:
            return list(self._templates.values())

    def merge(
        self, other: Library, dupes: DuplicatePolicy = DuplicatePolicy.ERROR,
    ) -> int:
        """Copy every template of *other* into this library.

        *other* is snapshotted first; later changes to it have no effect
        here.  Under ``ERROR`` the templates preceding the colliding one
        stay merged.  Returns the number of templates stored.
        """
        templates = other.snapshot()
        stored = 0
        with self._lock:
            for template in templates:
                if self.add(template, dupes):
                    stored += 1
        logger.info("Merged %d of %d template(s)", stored, len(templates))
        return stored

    def parse(
        self, text: str, dupes: DuplicatePolicy = DuplicatePolicy.ERROR,
    ) -> int:
        """Scan *text* for template blocks and add each one.

        Blocks finalised before a failure remain in the library.  Returns
        the number of templates stored.
        """
        if not isinstance(dupes, DuplicatePolicy):
            raise TypeError(f"dupes must be a DuplicatePolicy, got {dupes!r}")
        stored = 0
        with self._lock:
            for block in scan_blocks(text, dupes, exists=self.__contains__):
                if self.add(Template(block.name, block.body), dupes):
                    stored += 1
        logger.info("Parsed %d template(s)", stored)
        return stored

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._templates

    def __len__(self) -> int:
        with self._lock:
            return len(self._templates)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())
