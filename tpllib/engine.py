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

"""Template engine: library, parser and memoised renderer in one object.

Template documents can be parsed from strings or loaded from disk.  File
resolution when calling ``engine.load_file("emails.tpl")``:

1. ``<user_dir>/emails.tpl`` — user's customised version
2. ``<default_dir>/emails.tpl`` — package-shipped default

This lets users override any template document without touching installed
code.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from tpllib.cache import CacheStats, RenderCache, fingerprint
from tpllib.exceptions import RenderCycleError
from tpllib.library import Library
from tpllib.models import DuplicatePolicy, Template

logger = logging.getLogger(__name__)


class RenderContext:
    """Renderer handed to a template while it renders.

    Carries the chain of template names currently being rendered on this
    call path, so nested renders can detect cycles.
    """

    def __init__(self, engine: TemplateEngine, chain: tuple[str, ...]) -> None:
        self.engine = engine
        self.chain = chain

    def render(self, name: str, slots: Mapping[str, Any] | None = None) -> str:
        return self.engine._render(name, slots, self.chain)


class TemplateEngine:
    """Parse, store and render named templates.

    Each engine owns its own library and render cache; create a fresh
    engine for each isolated use.

    Args:
        user_dir: User override directory for template documents (checked first).
        default_dir: Package default directory (fallback).
    """

    def __init__(
        self,
        user_dir: Path | None = None,
        default_dir: Path | None = None,
    ) -> None:
        self.user_dir = Path(user_dir).expanduser() if user_dir else None
        self.default_dir = Path(default_dir).expanduser() if default_dir else None
        self.library = Library()
        self.cache = RenderCache()

    # --- Library ---

    def parse(self, text: str, dupes: DuplicatePolicy = DuplicatePolicy.ERROR) -> int:
        """Parse template blocks from *text* into the library.

        Raises :class:`TemplateParseError` for an unterminated block and
        :class:`DuplicateTemplateError` for a collision under ``ERROR``.
        Returns the number of templates stored.
        """
        return self.library.parse(text, dupes)

    def add_template(
        self, template: Template, dupes: DuplicatePolicy = DuplicatePolicy.ERROR,
    ) -> None:
        self.library.add(template, dupes)

    def merge(
        self,
        other: TemplateEngine | Library,
        dupes: DuplicatePolicy = DuplicatePolicy.ERROR,
    ) -> int:
        """Copy all templates from *other* into this engine's library.

        Only templates are merged; the render cache is left alone.
        """
        source = other.library if isinstance(other, TemplateEngine) else other
        return self.library.merge(source, dupes)

    def get_template(self, name: str) -> Template:
        return self.library.get(name)

    def list_templates(self) -> list[str]:
        return self.library.names()

    def has_template(self, name: str) -> bool:
        return name in self.library

    def __contains__(self, name: object) -> bool:
        return name in self.library

    def __len__(self) -> int:
        return len(self.library)

    # --- Rendering ---

    def render(self, name: str, slots: Mapping[str, Any] | None = None) -> str:
        """Render template *name* with *slots*.

        Output is memoised per (name, slots) for the lifetime of the
        engine, and is not refreshed if the template is later replaced.

        Raises :class:`MissingTemplateError` if *name* (or any template it
        pulls in) is unknown, and :class:`RenderCycleError` if rendering
        would recurse into a template already in progress.
        """
        return self._render(name, slots, ())

    def _render(
        self,
        name: str,
        slots: Mapping[str, Any] | None,
        chain: tuple[str, ...],
    ) -> str:
        if name in chain:
            raise RenderCycleError(name, chain)
        template = self.library.get(name)
        slots = dict(slots or {})
        key = fingerprint(name, slots)
        context = RenderContext(self, (*chain, name))
        # Nested renders must not block on another thread's in-flight
        # render: two threads nesting in opposite order would deadlock.
        return self.cache.get_or_compute(
            key, lambda: template.render(slots, context), wait=not chain,
        )

    def cache_stats(self) -> CacheStats:
        return self.cache.stats()

    # --- Template documents on disk ---

    def _resolve(self, filename: str) -> Path | None:
        for directory in (self.user_dir, self.default_dir):
            if directory is None:
                continue
            path = directory / filename
            if path.is_file():
                return path
        return None

    def has_file(self, filename: str) -> bool:
        """Check whether a template document exists in either directory."""
        return self._resolve(filename) is not None

    def load_file(
        self, filename: str, dupes: DuplicatePolicy = DuplicatePolicy.ERROR,
    ) -> int:
        """Parse the template document *filename* into the library.

        Raises :class:`FileNotFoundError` if the document exists in
        neither directory.
        """
        path = self._resolve(filename)
        if path is None:
            raise FileNotFoundError(
                f"Template document {filename!r} not found in "
                f"{self.user_dir} or {self.default_dir}"
            )
        stored = self.parse(path.read_text(encoding="utf-8"), dupes)
        logger.info("Loaded %d template(s) from %s", stored, path)
        return stored
