"""Unit tests for route pattern parsing and compilation."""

import pytest

from routekit.core.pattern import (
    DEFAULT_PARAMETER_REGEX,
    compile_pattern,
    expand_shortcuts,
    scan_placeholders,
)


class TestShortcuts:
    """Tests for shortcut expansion."""

    @pytest.mark.parametrize(
        "pattern,expected",
        [
            ("/foo/{id:i}", "/foo/{id:[0-9]+}"),
            ("/foo/{slug:a}", "/foo/{slug:[0-9A-Za-z]+}"),
            ("/foo/{file:al}", r"/foo/{file:[a-zA-Z0-9+_\-\.]+}"),
            ("/foo/{rest:any}", "/foo/{rest:.*}"),
            ("/foo/{id}", "/foo/{id}"),
        ],
    )
    def test_expand_shortcuts(self, pattern, expected) -> None:
        assert expand_shortcuts(pattern) == expected

    def test_shortcut_requires_closing_brace(self) -> None:
        """Test that only ':<shortcut>}' tokens are expanded."""
        assert expand_shortcuts("/foo:i/bar") == "/foo:i/bar"


class TestScanPlaceholders:
    """Tests for placeholder scanning."""

    def test_names_in_order(self) -> None:
        placeholders = scan_placeholders("/users/{user_id}/posts/{post_id}")
        assert [p.name for p in placeholders] == ["user_id", "post_id"]
        assert all(p.subpattern is None for p in placeholders)
        assert placeholders[0].regex == DEFAULT_PARAMETER_REGEX

    def test_custom_subpattern_with_nested_braces(self) -> None:
        """Test that balanced braces inside a subpattern are kept."""
        placeholders = scan_placeholders(r"/year/{year:\d{4}}/{code:[A-Z]{2,3}}")

        assert [p.name for p in placeholders] == ["year", "code"]
        assert placeholders[0].subpattern == r"\d{4}"
        assert placeholders[1].subpattern == "[A-Z]{2,3}"

    def test_whitespace_around_name(self) -> None:
        placeholders = scan_placeholders("/foo/{ id }/{ name : [a-z]+}")
        assert [p.name for p in placeholders] == ["id", "name"]
        assert placeholders[1].subpattern == "[a-z]+"

    def test_literal_quantifier_is_not_a_placeholder(self) -> None:
        placeholders = scan_placeholders(r"/v\d{1}/{id}")
        assert [p.name for p in placeholders] == ["id"]

    def test_unclosed_placeholder_is_ignored(self) -> None:
        assert scan_placeholders("/foo/{id") == []
        assert scan_placeholders("/foo/{id:[0-9]+") == []

    def test_name_grammar(self) -> None:
        """Test names may contain digits, underscores and dashes after the first char."""
        placeholders = scan_placeholders("/{_private}/{user-id}/{a1}/{1bad}")
        assert [p.name for p in placeholders] == ["_private", "user-id", "a1"]

    def test_spans_cover_placeholder_text(self) -> None:
        pattern = "/foo/{id:i}/bar"
        expanded = expand_shortcuts(pattern)
        placeholder = scan_placeholders(expanded)[0]
        assert expanded[placeholder.start : placeholder.end] == "{id:[0-9]+}"


class TestCompilePattern:
    """Tests for compiled patterns."""

    def test_default_placeholder(self) -> None:
        compiled = compile_pattern("/foo/{id}")

        assert compiled.match("/foo/34") == ["34"]
        assert compiled.match("/foo") is None
        assert compiled.match("/foo/34/bar") is None

    def test_anchored_at_both_ends(self) -> None:
        compiled = compile_pattern("/foo")

        assert compiled.match("/foo") == []
        assert compiled.match("/foobar") is None
        assert compiled.match("/x/foo") is None

    def test_case_insensitive(self) -> None:
        assert compile_pattern("/Users/{id:i}").match("/users/5") == ["5"]

    def test_nested_quantifier(self) -> None:
        compiled = compile_pattern(r"/archive/{year:\d{4}}")

        assert compiled.match("/archive/2024") == ["2024"]
        assert compiled.match("/archive/24") is None

    def test_capturing_group_in_subpattern_keeps_order(self) -> None:
        """Test that groups inside a custom subpattern do not shift parameters."""
        compiled = compile_pattern("/v{version:(1|2)}/{name}")
        assert compiled.match("/v2/users") == ["2", "users"]

    def test_optional_segment(self) -> None:
        compiled = compile_pattern("/posts(/{page:i})?")

        assert compiled.match("/posts") == [None]
        assert compiled.match("/posts/3") == ["3"]
        assert compiled.match("/posts/x") is None

    def test_duplicate_names(self) -> None:
        compiled = compile_pattern("/{id}/{id}")

        assert compiled.parameter_names == ["id", "id"]
        assert compiled.match("/1/2") == ["1", "2"]

    def test_invalid_regex_raises_value_error(self) -> None:
        with pytest.raises(ValueError, match="Invalid route pattern"):
            compile_pattern("/foo/{id:[}")
