"""Tests for tag parsing helpers."""

import pytest

from influxreport.models import Tag
from influxreport.utils.tags import (
    join_tags,
    lower_and_replace_spaces,
    to_influx_tag,
    to_influx_tags,
)


class TestToInfluxTag:
    """Test parsing a single key=value pair."""

    @pytest.mark.parametrize(
        "value",
        ["key", "key=", "=value", "key=value1=value2", "key,value", "key==", "==val", "", None],
    )
    def test_invalid_input_returns_none(self, value: str | None) -> None:
        assert to_influx_tag(value) is None

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("key=value", Tag("key", "value")),
            ("key with spaces=value with spaces", Tag("key with spaces", "value with spaces")),
            ("key,with,commas=value,with,commas", Tag("key,with,commas", "value,with,commas")),
            ('key"with"quot=value"with"quot', Tag('key"with"quot', 'value"with"quot')),
            (" key = value ", Tag("key", "value")),
        ],
    )
    def test_valid_input(self, value: str, expected: Tag) -> None:
        assert to_influx_tag(value) == expected

    def test_escaped_equals_does_not_split(self) -> None:
        assert to_influx_tag(r"a\=b=c") == Tag(r"a\=b", "c")


class TestToInfluxTags:
    """Test parsing groups of tags."""

    def test_comma_separated_string(self) -> None:
        assert to_influx_tags("key") == []
        assert to_influx_tags("key1=value1,key2=value2") == [
            Tag("key1", "value1"),
            Tag("key2", "value2"),
        ]
        assert to_influx_tags("key1,key2=value2,key3,key4") == [Tag("key2", "value2")]

    def test_multiple_strings(self) -> None:
        assert to_influx_tags("key1", "key2") == []
        assert to_influx_tags("key1", "key2=value2", "key3", "key4") == [Tag("key2", "value2")]

    def test_metric_tag_groups(self) -> None:
        assert to_influx_tags(("key1", "key2"), ("key3", "key4")) == []
        assert to_influx_tags(("key1=value1", "key2"), ("key3=value3", "key4")) == [
            Tag("key1", "value1"),
            Tag("key3", "value3"),
        ]


class TestJoinTags:
    """Test merging global, metric and item tags."""

    def test_single_label_becomes_name_tag(self) -> None:
        assert join_tags("item1") == [Tag("Name", "item1")]

    def test_single_pair_label_is_parsed(self) -> None:
        assert join_tags("env=prod") == [Tag("env", "prod")]

    def test_non_pairs_in_multi_part_label_are_dropped(self) -> None:
        tags = join_tags("item1,item2=ival2,item3=ival3", ("key1=value1",))

        assert tags == [
            Tag("key1", "value1"),
            Tag("item2", "ival2"),
            Tag("item3", "ival3"),
        ]

    def test_later_groups_override_earlier(self) -> None:
        tags = join_tags(None, "env=global,region=eu", ("env=metric",))

        assert tags == [Tag("env", "metric"), Tag("region", "eu")]

    def test_item_tags_override_everything(self) -> None:
        tags = join_tags("env=item", "env=global", ("env=metric",))

        assert tags == [Tag("env", "item")]

    def test_empty_label(self) -> None:
        assert join_tags("", ("a=b",)) == [Tag("a", "b")]


class TestLowerAndReplaceSpaces:
    """Test identifier normalization."""

    def test_defaults(self) -> None:
        assert lower_and_replace_spaces("Health Check 1") == "health_check_1"

    def test_escaped_spaces_are_kept(self) -> None:
        assert lower_and_replace_spaces(r"a\ b c") == r"a\ b_c"

    def test_no_lowercase(self) -> None:
        assert lower_and_replace_spaces("A B", lowercase=False) == "A_B"

    def test_none_replacement_keeps_spaces(self) -> None:
        assert lower_and_replace_spaces("A B", replace_chars=None) == "a b"

    def test_empty_replacement_removes_spaces(self) -> None:
        assert lower_and_replace_spaces("A B C", replace_chars="") == "abc"
