"""Tests for the PHP assignment parser and var_export writer."""

import pytest

from sugarpack.phpsyntax import PhpSyntaxError, export, export_assignments, parse_php


class TestParsePhp:
    """Tests for parse_php."""

    def test_parses_subscript_assignments_into_nested_mapping(self) -> None:
        """Verify chained subscripts build nested mappings."""
        # Given
        source = (
            "<?php\n"
            "$manifest['id'] = 'id_001';\n"
            "$manifest['built_in_version'] = '9.3';\n"
            "$manifest['acceptable_sugar_versions']['regex_matches'] = array('^9.[\\d]+.[\\d]+$');\n"
        )

        # When
        result = parse_php(source)

        # Then
        assert result["manifest"] == {
            "id": "id_001",
            "built_in_version": "9.3",
            "acceptable_sugar_versions": {"regex_matches": [r"^9.[\d]+.[\d]+$"]},
        }

    def test_parses_scalars(self) -> None:
        """Verify booleans, null, integers and floats are converted."""
        # Given
        source = "<?php $v = array('a' => true, 'b' => FALSE, 'c' => null, 'd' => 42, 'e' => -1.5);"

        # When
        result = parse_php(source)

        # Then
        assert result["v"] == {"a": True, "b": False, "c": None, "d": 42, "e": -1.5}

    def test_sequential_arrays_become_lists(self) -> None:
        """Verify arrays keyed 0..n-1 become lists, others stay mappings."""
        # Given
        source = "<?php $a = array(0 => 'x', 1 => 'y'); $b = array(1 => 'x'); $c = ['p', 'q'];"

        # When
        result = parse_php(source)

        # Then
        assert result["a"] == ["x", "y"]
        assert result["b"] == {1: "x"}
        assert result["c"] == ["p", "q"]

    def test_push_syntax_appends(self) -> None:
        """Verify $var['key'][] = value appends to the list."""
        # Given
        source = (
            "<?php\n"
            "$installdefs['post_execute'][] = '<basepath>/scripts/one.php';\n"
            "$installdefs['post_execute'][] = '<basepath>/scripts/two.php';\n"
        )

        # When
        result = parse_php(source)

        # Then
        assert result["installdefs"]["post_execute"] == [
            "<basepath>/scripts/one.php",
            "<basepath>/scripts/two.php",
        ]

    def test_numeric_string_keys_become_integers(self) -> None:
        """Verify PHP key casting turns '0' into 0."""
        # Given
        source = "<?php $a = array('0' => 'first', '1' => 'second');"

        # When
        result = parse_php(source)

        # Then
        assert result["a"] == ["first", "second"]

    def test_single_quoted_escapes(self) -> None:
        """Verify only \\\\ and \\' are escapes in single-quoted strings."""
        # Given
        source = r"<?php $s = 'it\'s a \\ path \d';"

        # When
        result = parse_php(source)

        # Then
        assert result["s"] == "it's a \\ path \\d"

    def test_double_quoted_escapes(self) -> None:
        """Verify common escapes in double-quoted strings."""
        # Given
        source = r'<?php $s = "line\nnext \"quoted\" \d";'

        # When
        result = parse_php(source)

        # Then
        assert result["s"] == 'line\nnext "quoted" \\d'

    def test_ignores_comments_and_non_assignment_statements(self) -> None:
        """Verify comments and statements such as echo are skipped."""
        # Given
        source = (
            "<?php\n"
            "// a comment\n"
            "# another comment\n"
            "/* block\n comment */\n"
            'echo "my manifest file";\n'
            "PHP_EOL;\n"
            "$x = 'kept';\n"
            "?>\n"
        )

        # When
        result = parse_php(source)

        # Then
        assert result == {"x": "kept"}

    def test_later_assignment_overrides_earlier(self) -> None:
        """Verify subscript assignment after a whole-array assignment updates it."""
        # Given
        source = "<?php $d = array('copy' => array(), 'id' => 'a'); $d['copy'] = array('x');"

        # When
        result = parse_php(source)

        # Then
        assert result["d"] == {"copy": ["x"], "id": "a"}

    def test_unsupported_expression_raises_with_line(self) -> None:
        """Verify function calls are rejected with the offending line."""
        # Given
        source = "<?php\n$manifest['id'] = 'ok';\n$manifest['date'] = date('Y');\n"

        # When/Then
        with pytest.raises(PhpSyntaxError, match="line 3"):
            parse_php(source)

    def test_unterminated_statement_raises(self) -> None:
        """Verify a missing semicolon at end of file is an error."""
        # Given
        source = "<?php $manifest['id'] = 'x'"

        # When/Then
        with pytest.raises(PhpSyntaxError, match="end of file"):
            parse_php(source)


class TestExport:
    """Tests for export and export_assignments."""

    def test_exports_var_export_layout(self) -> None:
        """Verify nested arrays follow PHP var_export indentation."""
        # Given
        value = {"id": "abc", "flags": {"on": True}, "list": [1]}

        # When
        result = export(value)

        # Then
        assert result == (
            "array (\n"
            "  'id' => 'abc',\n"
            "  'flags' => \n"
            "  array (\n"
            "    'on' => true,\n"
            "  ),\n"
            "  'list' => \n"
            "  array (\n"
            "    0 => 1,\n"
            "  ),\n"
            ")"
        )

    def test_escapes_quotes_and_backslashes(self) -> None:
        """Verify strings are single-quoted with PHP escaping."""
        # Given/When
        result = export("it's \\d")

        # Then
        assert result == "'it\\'s \\\\d'"

    def test_exports_null_and_empty_array(self) -> None:
        """Verify None and empty containers."""
        # Given/When/Then
        assert export(None) == "NULL"
        assert export([]) == "array (\n)"

    def test_implicit_indices_omit_list_keys(self) -> None:
        """Verify list elements are written without numeric keys."""
        # Given
        value = [{"from": "<basepath>/a.php", "to": "a.php"}]

        # When
        result = export(value, implicit_indices=True)

        # Then
        assert "0 =>" not in result
        assert parse_php(f"<?php $copy = {result};")["copy"] == value

    def test_rejects_unsupported_types(self) -> None:
        """Verify objects that have no PHP literal form are rejected."""
        # Given/When/Then
        with pytest.raises(TypeError, match="object"):
            export({"x": object()})

    def test_export_assignments_writes_one_statement_per_leaf(self) -> None:
        """Verify nested mappings become chained subscripts."""
        # Given
        value = {"id": "", "acceptable_sugar_versions": {"regex_matches": ["^8$"]}}

        # When
        result = export_assignments("manifest", value)

        # Then
        lines = result.splitlines()
        assert lines[0] == "$manifest['id'] = '';"
        assert lines[1].startswith("$manifest['acceptable_sugar_versions']['regex_matches'] = array (")
        assert parse_php("<?php\n" + result)["manifest"] == value

    def test_parse_reads_back_exported_values(self) -> None:
        """Verify exported structures parse back to the same values."""
        # Given
        value = {
            "name": "O'Brien \\ Co",
            "count": 3,
            "ratio": 0.25,
            "enabled": False,
            "missing": None,
            "beans": [{"module": "Packages", "tab": False}],
        }

        # When
        result = parse_php(f"<?php $v = {export(value)};")

        # Then
        assert result["v"] == value
