from inidoc import loads, DuplicateElementError, Property, Section
from inidoc.duplicates import first_win, last_win, merge_keys
import pytest

DB = "[Db]\nk = 1\n[DB]\nk = 2\n"


def values(document, section="Db"):
    return [(p.name, p.value) for p in document[section]]


class TestSectionPolicies:

    def test_first_win(self):
        document = loads(DB, duplicate_section_policy="first_win")
        assert len(document) == 1
        assert document[0].name == "Db"
        assert document.get_value("db", "k") == "1"

    def test_last_win(self):
        document = loads(DB, duplicate_section_policy="last_win")
        assert len(document) == 1
        assert document[0].name == "DB"
        assert document.get_value("db", "k") == "2"

    @pytest.mark.parametrize(
        "key_policy,expected", [("first_win", "1"), ("last_win", "2"), ("merge", "2")]
    )
    def test_merge(self, key_policy, expected):
        document = loads(
            DB, duplicate_section_policy="merge", duplicate_key_policy=key_policy
        )
        assert len(document) == 1
        assert document[0].name == "Db"
        assert values(document) == [("k", expected)]

    def test_merge_with_throw_error_keys(self):
        with pytest.raises(DuplicateElementError) as e:
            loads(DB, duplicate_section_policy="merge", duplicate_key_policy="throw_error")
        assert e.value.element_type == "property"
        assert e.value.element_name == "k"

    def test_throw_error(self):
        with pytest.raises(DuplicateElementError, match="Duplicate section name 'DB' found") as e:
            loads(DB, duplicate_section_policy="throw_error")
        assert e.value.element_type == "section"
        assert e.value.section_name is None

    def test_merge_appends_properties(self):
        document = loads(
            "[a]\nx = 1\n[b]\n[A]\ny = 2\n", duplicate_section_policy="merge"
        )
        assert [s.name for s in document] == ["a", "b"]
        assert values(document, "a") == [("x", "1"), ("y", "2")]

    def test_last_win_keeps_relative_order(self):
        document = loads(
            "[a]\n[b]\n[A]\n[c]\n[B]\n", duplicate_section_policy="last_win"
        )
        assert [s.name for s in document] == ["A", "c", "B"]

    @pytest.mark.parametrize(
        "key_policy,pre_comments,comment",
        [
            ("first_win", "first", "one"),
            ("last_win", "second", "two"),
            ("throw_error", "first\nsecond", "onetwo"),
        ],
    )
    def test_merge_header_comments(self, key_policy, pre_comments, comment):
        text = ";first\n[a] ;one\nx = 1\n;second\n[a] ;two\ny = 2\n"
        document = loads(
            text, duplicate_section_policy="merge", duplicate_key_policy=key_policy
        )
        assert document["a"].pre_comments.to_multiline_text() == pre_comments
        assert document["a"].comment.value == comment


class TestKeyPolicies:
    text = "[s]\na = 1\nb = 2\nA = 3 ;last\n"

    def test_first_win(self):
        document = loads(self.text, duplicate_key_policy="first_win")
        assert values(document, "s") == [("a", "1"), ("b", "2")]

    def test_last_win(self):
        document = loads(self.text, duplicate_key_policy="last_win")
        assert values(document, "s") == [("b", "2"), ("A", "3")]

    def test_merge(self):
        document = loads(
            "[s]\n;one\na = 1\nb = 2\n;two\nA = \"3\" ;last\n",
            duplicate_key_policy="merge",
        )
        assert values(document, "s") == [("a", "3"), ("b", "2")]
        merged = document["s"]["a"]
        assert merged.is_quoted
        assert merged.comment.value == "last"
        assert merged.pre_comments.to_multiline_text() == "one\ntwo"

    def test_throw_error(self):
        with pytest.raises(DuplicateElementError) as e:
            loads(self.text, duplicate_key_policy="throw_error")
        assert isinstance(e.value, ValueError)
        assert e.value.element_name == "A"
        assert e.value.section_name == "s"

    def test_default_section(self):
        document = loads("k = 1\nK = 2", duplicate_key_policy="last_win")
        assert [(p.name, p.value) for p in document.default_section] == [("K", "2")]

    def test_unique_keys_untouched(self):
        document = loads("[s]\na = 1\nb = 2", duplicate_key_policy="throw_error")
        assert values(document, "s") == [("a", "1"), ("b", "2")]


class TestHelpers:

    def props(self, *pairs):
        return [Property(name, value) for name, value in pairs]

    def test_first_and_last_win(self):
        items = self.props(("a", "1"), ("b", "2"), ("A", "3"), ("c", "4"), ("B", "5"))
        assert [p.value for p in first_win(items)] == ["1", "2", "4"]
        assert [p.value for p in last_win(items)] == ["3", "4", "5"]

    def test_merge_keys_keeps_first_position(self):
        items = self.props(("a", "1"), ("b", "2"), ("A", "3"))
        merged = merge_keys(items)
        assert [(p.name, p.value) for p in merged] == [("a", "3"), ("b", "2")]

    def test_section_merge_from(self):
        target = Section("s", [Property("a", "1")], comment="mine")
        other = Section("S", [Property("a", "2"), Property("b", "3")], comment="theirs")
        target.merge_from(other, "last_win")
        assert [(p.name, p.value) for p in target] == [("a", "2"), ("b", "3")]
        assert target.comment.value == "theirs"
        # the other section is cloned, not consumed
        assert len(other) == 2
        assert target["b"] is not other["b"]

    def test_section_merge_from_unknown_policy(self):
        with pytest.raises(ValueError):
            Section("s").merge_from(Section("s"), "whatever")
