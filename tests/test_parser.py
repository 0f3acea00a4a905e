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

"""Tests for tpllib.parser — the template block scanner."""

from __future__ import annotations

import pytest

from tpllib.exceptions import DuplicateTemplateError, TemplateParseError
from tpllib.models import DuplicatePolicy
from tpllib.parser import end_marker, scan_blocks, start_marker


def _blocks(text, dupes=DuplicatePolicy.ERROR, existing=()):
    known = set(existing)
    return [
        (b.name, b.body, b.line)
        for b in scan_blocks(text, dupes, exists=known.__contains__)
    ]


class TestMarkers:
    def test_marker_helpers(self):
        assert start_marker("a.b") == "<%%STARTTEMPLATE a.b%%>"
        assert end_marker("a.b") == "<%%ENDTEMPLATE a.b%%>"


class TestSingleLine:
    def test_single_line_block(self):
        text = "<%%STARTTEMPLATE greet%%>Hello, {{name}}!<%%ENDTEMPLATE greet%%>"
        assert _blocks(text) == [("greet", "Hello, {{name}}!", 1)]

    def test_surrounding_text_ignored(self):
        text = "prefix <%%STARTTEMPLATE a%%>x<%%ENDTEMPLATE a%%> suffix"
        assert _blocks(text) == [("a", "x", 1)]

    def test_empty_body(self):
        text = "<%%STARTTEMPLATE e%%><%%ENDTEMPLATE e%%>"
        assert _blocks(text) == [("e", "", 1)]

    def test_repeated_start_marker_uses_last_occurrence(self):
        text = "<%%STARTTEMPLATE a%%>junk<%%STARTTEMPLATE a%%>body<%%ENDTEMPLATE a%%>"
        assert _blocks(text) == [("a", "body", 1)]

    def test_end_marker_of_other_name_does_not_close(self):
        text = "<%%STARTTEMPLATE a%%>x<%%ENDTEMPLATE b%%>\n<%%ENDTEMPLATE a%%>"
        assert _blocks(text) == [("a", "x<%%ENDTEMPLATE b%%>\n", 1)]


class TestMultiLine:
    def test_lines_kept_verbatim(self):
        text = (
            "intro\n"
            "<%%STARTTEMPLATE a%%>\n"
            "line1\n"
            "  line2\n"
            "<%%ENDTEMPLATE a%%> trailing junk\n"
            "outro\n"
        )
        assert _blocks(text) == [("a", "line1\n  line2\n", 2)]

    def test_first_fragment_kept_when_not_blank(self):
        text = "<%%STARTTEMPLATE a%%>first\nsecond<%%ENDTEMPLATE a%%>"
        assert _blocks(text) == [("a", "first\nsecond", 1)]

    def test_blank_first_fragment_discarded(self):
        text = "<%%STARTTEMPLATE a%%>   \nbody\n<%%ENDTEMPLATE a%%>"
        assert _blocks(text) == [("a", "body\n", 1)]

    def test_crlf_terminators_preserved(self):
        text = "<%%STARTTEMPLATE a%%>\r\nx\r\n<%%ENDTEMPLATE a%%>\r\n"
        assert _blocks(text) == [("a", "x\r\n", 1)]

    def test_start_marker_inside_block_is_body(self):
        text = (
            "<%%STARTTEMPLATE outer%%>\n"
            "<%%STARTTEMPLATE inner%%>\n"
            "<%%ENDTEMPLATE outer%%>\n"
        )
        assert _blocks(text) == [("outer", "<%%STARTTEMPLATE inner%%>\n", 1)]

    def test_several_blocks(self):
        text = (
            "<%%STARTTEMPLATE a%%>A<%%ENDTEMPLATE a%%>\n"
            "ignored\n"
            "<%%STARTTEMPLATE b%%>\n"
            "B\n"
            "<%%ENDTEMPLATE b%%>\n"
        )
        assert _blocks(text) == [("a", "A", 1), ("b", "B\n", 3)]

    def test_no_markers(self):
        assert _blocks("just\nsome\ntext\n") == []
        assert _blocks("") == []


class TestUnterminated:
    def test_reports_name_and_start_line(self):
        text = "text\n<%%STARTTEMPLATE foo%%>\nbody\n"
        with pytest.raises(TemplateParseError) as exc_info:
            _blocks(text)
        assert exc_info.value.name == "foo"
        assert exc_info.value.line == 2
        assert "foo" in str(exc_info.value)

    def test_blocks_before_error_are_yielded(self):
        text = "<%%STARTTEMPLATE ok%%>x<%%ENDTEMPLATE ok%%>\n<%%STARTTEMPLATE bad%%>\n"
        seen = []
        with pytest.raises(TemplateParseError):
            for block in scan_blocks(text):
                seen.append(block.name)
        assert seen == ["ok"]

    def test_unterminated_ignored_duplicate(self):
        text = "<%%STARTTEMPLATE dup%%>\nbody\n"
        with pytest.raises(TemplateParseError, match="dup"):
            _blocks(text, DuplicatePolicy.IGNORE, existing={"dup"})


class TestDuplicates:
    def test_error_policy_cites_line(self):
        text = "\n\n<%%STARTTEMPLATE dup%%>B<%%ENDTEMPLATE dup%%>"
        with pytest.raises(DuplicateTemplateError) as exc_info:
            _blocks(text, DuplicatePolicy.ERROR, existing={"dup"})
        assert exc_info.value.name == "dup"
        assert exc_info.value.line == 3

    def test_overwrite_policy_yields_block(self):
        text = "<%%STARTTEMPLATE dup%%>B<%%ENDTEMPLATE dup%%>"
        assert _blocks(text, DuplicatePolicy.OVERWRITE, existing={"dup"}) == [
            ("dup", "B", 1)
        ]

    def test_ignore_policy_skips_whole_block(self):
        text = (
            "<%%STARTTEMPLATE dup%%>\n"
            "<%%STARTTEMPLATE hidden%%>x<%%ENDTEMPLATE hidden%%>\n"
            "<%%ENDTEMPLATE dup%%>\n"
            "<%%STARTTEMPLATE after%%>y<%%ENDTEMPLATE after%%>\n"
        )
        assert _blocks(text, DuplicatePolicy.IGNORE, existing={"dup"}) == [
            ("after", "y", 4)
        ]

    def test_ignore_policy_single_line(self):
        text = "<%%STARTTEMPLATE dup%%>B<%%ENDTEMPLATE dup%%>"
        assert _blocks(text, DuplicatePolicy.IGNORE, existing={"dup"}) == []
