"""Tests for the Allman-style reformatter and the preprocessing helpers."""

from mcp_line_counter.formatter import (
    FormatOptions,
    count_significant_lines,
    format_c_functions,
    format_single_c_function,
    normalize_whitespace,
    preprocess_for_counting,
    reformat_lines,
    remove_comments,
    remove_empty_lines,
)


class TestFunctionSignatureWithBrace:
    """A signature line ending in ``{`` is split, inline statements go one per line."""

    def test_brace_moved_to_own_line(self):
        lines = ["int f(void) {", "\treturn 0;", "}"]
        assert reformat_lines(lines) == ["int f(void)", "{", "\treturn 0;", "}"]

    def test_indentation_kept(self):
        assert reformat_lines(["    int f(void) {"]) == ["    int f(void)", "    {"]

    def test_single_line_body(self):
        assert reformat_lines(["int f(void) { x = 1; y = 2; }"]) == [
            "int f(void)",
            "{",
            "\tx = 1;",
            "\ty = 2;",
            "}",
        ]

    def test_empty_body(self):
        assert reformat_lines(["int f(void) {}"]) == ["int f(void)", "{", "}"]
        assert reformat_lines(["int f(void) { }"]) == ["int f(void)", "{", "}"]

    def test_text_after_closing_brace(self):
        assert reformat_lines(["int f(void) { return 1; } // done"]) == [
            "int f(void)",
            "{",
            "\treturn 1;",
            "}",
            "// done",
        ]

    def test_for_header_not_split(self):
        assert reformat_lines(["int f(void) { for (i = 0; i < 3; i++) x++; }"]) == [
            "int f(void)",
            "{",
            "\tfor (i = 0; i < 3; i++) x++;",
            "}",
        ]

    def test_unterminated_statement_kept_as_is(self):
        assert reformat_lines(["int f(void) { return x }"]) == [
            "int f(void)",
            "{",
            "\treturn x",
            "}",
        ]

    def test_semicolon_in_string_not_split(self):
        assert reformat_lines(['int f(void) { puts("a;b"); }']) == [
            "int f(void)",
            "{",
            '\tputs("a;b");',
            "}",
        ]

    def test_open_body_with_statement(self):
        assert reformat_lines(["int f(void) { x = 1;", "\treturn x;", "}"]) == [
            "int f(void)",
            "{",
            "\tx = 1;",
            "\treturn x;",
            "}",
        ]

    def test_two_functions_on_one_line(self):
        assert reformat_lines(["int f(void) { x = 1; } int g(void) { y = 2; }"]) == [
            "int f(void)",
            "{",
            "\tx = 1;",
            "}",
            "int g(void)",
            "{",
            "\ty = 2;",
            "}",
        ]


class TestOtherBraceRules:
    def test_empty_brace_pair(self):
        assert reformat_lines(["\t{ }"]) == ["\t{", "\t}"]

    def test_closing_brace_with_content_tab(self):
        assert reformat_lines(["\t\tx = 1; }"]) == ["\t\tx = 1;", "\t}"]

    def test_closing_brace_with_content_spaces(self):
        assert reformat_lines(["        x = 1; }"]) == ["        x = 1;", "    }"]

    def test_closing_brace_with_content_odd_indent(self):
        assert reformat_lines(["  x; }"]) == ["  x;", " }"]

    def test_control_lines_untouched(self):
        lines = ["\tif (x) {", "\t} else {", "\t}"]
        assert reformat_lines(lines) == lines

    def test_brace_in_comment_untouched(self):
        assert reformat_lines(["\tx = 1; // }"]) == ["\tx = 1; // }"]

    def test_comments_and_preprocessor_untouched(self):
        lines = ["#define F(x) { x }", "/* int f(void) { */", "// int g(void) { }", ""]
        assert reformat_lines(lines) == lines

    def test_lines_inside_block_comment_untouched(self):
        lines = ["/*", "int f(void) { x; }", "*/"]
        assert reformat_lines(lines) == lines


class TestIdempotence:
    def test_reformat_twice(self):
        src = (
            "int a(void) { return 1; }\n"
            "int b(int x) {\n"
            "\tif (x) { x++; }\n"
            "\treturn x;\n"
            "}\n"
            "int c(void) {}\n"
        )
        once = format_c_functions(src)
        assert format_c_functions(once) == once

    def test_allman_input_unchanged(self):
        src = "int f(void)\n{\n\treturn 0;\n}\n"
        assert format_c_functions(src) == src

    def test_crlf_normalized(self):
        assert format_c_functions("int f(void) {\r\n}\r\n") == "int f(void)\n{\n}\n"


class TestFormatSingleFunction:
    def test_brace_moved(self):
        src = "int f(void) {\n\treturn 0;\n}"
        assert format_single_c_function(src) == "int f(void)\n{\n\treturn 0;\n}"

    def test_already_allman(self):
        src = "int f(void)\n{\n}"
        assert format_single_c_function(src) == src


class TestPreprocessing:
    def test_remove_comments(self):
        assert remove_comments("a /* b */ c // d\ne <!-- f -->") == "a  c \ne "

    def test_normalize_whitespace(self):
        assert normalize_whitespace("a  \t b   \nc\r\n") == "a b\nc\n"

    def test_normalize_whitespace_preserving_indentation(self):
        assert normalize_whitespace("\t\ta   b  ", preserve_indentation=True) == "\t\ta b"

    def test_remove_empty_lines(self):
        assert remove_empty_lines("a\n\n  \nb") == "a\nb"

    def test_preprocess_options(self):
        opts = FormatOptions(remove_comments=False, format_c_functions=False)
        assert preprocess_for_counting("x;  // c\n\ny;", opts) == "x; // c\ny;"

    def test_count_significant_lines(self):
        src = "int f(void) {\n\t// c\n\treturn 0;\n}\n"
        assert count_significant_lines(src) == 4
