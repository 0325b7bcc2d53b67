from .base import Base
from inidoc import Parameters, dumps, loads, IniParsingWarning, SecurityLimitWarning
from inidoc.reader import unescape, strip_line_break
from inidoc.globals import UNESCAPE_TABLE
import pytest


def collect(text: str, **kwargs):
    return loads(text, collect_errors=True, **kwargs)


class TestTokenizer:

    @pytest.mark.parametrize(
        "line,value,is_quoted,comment",
        [
            ("key = value", "value", False, None),
            ("key=value", "value", False, None),
            ("key =    value   ", "value", False, None),
            ("key =", "", False, None),
            ("key = a = b", "a = b", False, None),
            ("key = value ;comment", "value", False, "comment"),
            ("key = value;", "value", False, None),
            ("key = value #  spaced", "value", False, "  spaced"),
            ('key = ""', "", True, None),
            ('key = "  x  "', "  x  ", True, None),
            ('key = "a;b#c"', "a;b#c", True, None),
            ('key = "v" ;c', "v", True, "c"),
            ('key = "v";c', "v", True, "c"),
            ('key = "\\0\\a\\b\\t\\r\\n\\;\\#\\"\\\\"', '\0\a\b\t\r\n;#"\\', True, None),
            ('key = "\\q"', "q", True, None),
        ],
    )
    def test_property_line(self, line, value, is_quoted, comment):
        document = loads(line)
        prop = document.default_section["key"]
        assert prop.value == value
        assert prop.is_quoted is is_quoted
        if comment is None:
            assert prop.comment is None
        else:
            assert prop.comment.value == comment

    @pytest.mark.parametrize(
        "line,kind,reason",
        [
            ("[section", "missing_closing_bracket", "Missing closing bracket in section declaration"),
            ("[  ]", "empty_section_name", "Section name cannot be empty"),
            ("just text", "missing_equals", "Missing equals sign in key-value pair"),
            ("= value", "empty_key", "Key is empty"),
            ('key = "open', "unterminated_quote", "Unterminated quote: missing closing quotation mark"),
            ('key = "open\\', "incomplete_escape", "Invalid escape sequence: incomplete escape marker"),
            ('key = "v" x ;c', "content_after_quote", "Invalid content after closing quote"),
            ('key = "v" x', "invalid_quote_format", "Invalid quote format"),
        ],
    )
    def test_malformed_line(self, line, kind, reason):
        document = collect(f"ok = 1\n{line}\nalso = 2")
        assert [p.name for p in document.default_section] == ["ok", "also"]
        (error,) = document.parsing_errors
        assert error.kind == kind
        assert error.reason == reason
        assert error.line_number == 2
        assert error.line == line

    def test_invalid_section_name(self):
        document = collect("[a[b]\nkey = 1")
        (error,) = document.parsing_errors
        assert error.kind == "invalid_section_name"
        assert error.reason.startswith("Invalid section name: ")
        # previous section stays current
        assert "key" in document.default_section

    def test_malformed_header_keeps_previous_section(self):
        document = collect("[first]\na = 1\n[broken\nb = 2")
        assert len(document) == 1
        assert [p.name for p in document["first"]] == ["a", "b"]

    def test_errors_warn_without_collecting(self):
        with pytest.warns(IniParsingWarning, match="Line 2 is being ignored"):
            document = loads("a = 1\nnot a property")
        assert document.parsing_errors == ()

    def test_reported_line_is_truncated(self):
        line = "x" * 500
        (error,) = collect(line).parsing_errors
        assert error.line == "x" * 200

    def test_unescape(self):
        for letter, char in UNESCAPE_TABLE.items():
            assert unescape(f"\\{letter}") == char
        assert unescape("a\\zb") == "azb"
        with pytest.raises(ValueError):
            unescape("abc\\")

    @pytest.mark.parametrize(
        "line,expected",
        [("a\r\n", "a"), ("a\n", "a"), ("a\r", "a"), ("a", "a"), ("a\n\n", "a\n")],
    )
    def test_strip_line_break(self, line, expected):
        assert strip_line_break(line) == expected


class TestStructure:

    def test_sections_and_comments(self):
        base = Base()
        base.add_comment(" top")
        base.add_property("1", key="root")
        header_comment = base.add_comment()
        section = base.add_section(comment="inline")
        key = base.add_property("2")
        document = loads(base.content)

        root = document.default_section["root"]
        assert root.pre_comments.to_multiline_text() == " top"
        assert document[section].pre_comments.to_multiline_text() == header_comment
        assert document[section].comment.value == "inline"
        assert document.get_value(section, key, int) == 2

    def test_comment_keeps_prefix_and_text(self):
        document = loads("#  hash comment  \nkey = 1")
        (comment,) = document.default_section["key"].pre_comments
        assert comment.prefix == "#"
        assert comment.value == "  hash comment"

    def test_trailing_comments_are_dropped(self):
        document = loads("[a]\nkey = 1\n; orphan")
        assert document["a"]["key"].pre_comments == []
        assert document["a"].comment is None

    @pytest.mark.parametrize("newline", ["\n", "\r\n", "\r"])
    def test_line_breaks(self, newline):
        document = collect(newline.join(["[a]", "x = 1", "; c", "y = 2"]))
        assert document.parsing_errors == ()
        assert document["a"]["y"].pre_comments.to_multiline_text() == " c"

    def test_line_numbers_count_blank_lines(self):
        document = collect("\n\n[a]\n\nbroken\n")
        assert document.parsing_errors[0].line_number == 5

    def test_database_section(self):
        document = collect('[Db]\nHost = "local host"\n; note\nPort=5432')
        assert document.parsing_errors == ()
        assert [s.name for s in document] == ["Db"]
        host, port = document["db"]
        assert (host.name, host.value, host.is_quoted) == ("Host", "local host", True)
        assert (port.name, port.value, port.is_quoted) == ("Port", "5432", False)
        assert port.pre_comments.to_multiline_text() == " note"
        assert host.pre_comments == []

        text = dumps(document)
        assert text == '[Db]\nHost = "local host"\n; note\nPort = 5432\n'
        again = collect(text)
        assert again.parsing_errors == ()
        assert dumps(again) == text
        assert again.get_value("DB", "port", int) == 5432

    def test_default_section_only(self):
        document = loads("a = 1\nb = 2")
        assert len(document) == 0
        assert len(document.default_section) == 2


class TestLimits:

    def test_line_length(self):
        text = "short = 1\nlong = " + "x" * 100 + "\nafter = 2"
        document = collect(text, max_line_length=50)
        (error,) = document.parsing_errors
        assert error.kind == "line_too_long"
        assert error.line_number == 2
        assert [p.name for p in document.default_section] == ["short", "after"]

    def test_line_length_ignores_line_terminator(self):
        document = collect("k = 12\r\n", max_line_length=6)
        assert document.parsing_errors == ()

    def test_section_count(self):
        text = "\n".join(f"[s{i}]\nk = {i}" for i in range(1001))
        document = collect(text, max_sections=1000)
        assert len(document) == 1000
        (error,) = document.parsing_errors
        assert error.kind == "too_many_sections"
        assert "s1000" not in document

    def test_rejected_section_drops_its_properties(self):
        document = collect("[a]\nx = 1\n[b]\ny = 2\nz = 3", max_sections=1)
        assert [s.name for s in document] == ["a"]
        assert [p.name for p in document["a"]] == ["x"]
        assert len(document.parsing_errors) == 1

    def test_properties_per_section(self):
        document = collect("[a]\nx = 1\ny = 2\nz = 3\n[b]\nx = 1", max_properties_per_section=2)
        assert [p.name for p in document["a"]] == ["x", "y"]
        assert len(document["b"]) == 1
        (error,) = document.parsing_errors
        assert error.kind == "too_many_properties"
        assert error.line_number == 4

    def test_value_length(self):
        document = collect('a = "' + "v" * 11 + '"\nb = ' + "v" * 10, max_value_length=10)
        assert "a" not in document.default_section
        assert "b" in document.default_section
        assert document.parsing_errors[0].kind == "value_too_long"

    def test_pending_comments_drop_oldest(self):
        document = loads(";1\n;2\n;3\n;4\nkey = v", max_pending_comments=2)
        comments = document.default_section["key"].pre_comments
        assert [c.value for c in comments] == ["3", "4"]

    def test_parsing_error_limit(self):
        document = collect("a\nb\nc\nd", max_parsing_errors=2)
        assert len(document.parsing_errors) == 2
        assert document.parsing_error_count == 4

    def test_limit_warning_category(self):
        with pytest.warns(SecurityLimitWarning):
            loads("key = " + "x" * 20, max_line_length=10)

    def test_unlimited_by_default(self):
        document = collect("k = " + "x" * 100_000)
        assert document.parsing_errors == ()
        assert len(document.default_section["k"].value) == 100_000

    def test_parameters_object_is_not_modified(self):
        parameters = Parameters()
        collect("k = 1", parameters=parameters, max_sections=1)
        assert parameters.max_sections == 0
        assert parameters.collect_errors is False
