# Copyright 2026 PumlParse Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the PlantUML lexical scanner."""

import pytest

from pumlparse.model.diagnostics import DiagnosticKind, Severity
from pumlparse.parser.lexer import Lexer, Token, TokenType, tokenize
from pumlparse.resolvers import MappingIncludeResolver

# ###############
# Test Helpers
# ###############


def _tokens(source: str) -> list[Token]:
    """Return all tokens including the terminal EOF."""
    return tokenize(source)


def _content(source: str) -> list[Token]:
    """Return all tokens except EOL and the terminal EOF."""
    result = tokenize(source)
    assert result[-1].type == TokenType.EOF
    return [tok for tok in result[:-1] if tok.type != TokenType.EOL]


def _types(source: str) -> list[TokenType]:
    return [tok.type for tok in _content(source)]


def _values(source: str) -> list[str]:
    return [tok.value for tok in _content(source)]


# ###############
# EOF and EOL Handling
# ###############


class TestBoundaries:
    def test_empty_string_produces_eof(self) -> None:
        tokens = _tokens("")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.EOF

    def test_eof_at_line_1_column_1_for_empty_input(self) -> None:
        tokens = _tokens("")
        assert tokens[0].line == 1
        assert tokens[0].column == 1

    def test_blank_lines_produce_bare_eol(self) -> None:
        tokens = _tokens("   \t\n  ")
        assert [tok.type for tok in tokens] == [TokenType.EOL, TokenType.EOL, TokenType.EOF]
        assert [tok.value for tok in tokens[:2]] == ["", ""]
        assert [tok.line for tok in tokens[:2]] == [1, 2]

    def test_trailing_newline_adds_no_line(self) -> None:
        types = [tok.type for tok in _tokens("class A\n")]
        assert types == [TokenType.KEYWORD, TokenType.IDENTIFIER, TokenType.EOL, TokenType.EOF]

    def test_each_content_line_ends_with_eol(self) -> None:
        types = [tok.type for tok in _tokens("class A\nclass B")]
        assert types == [
            TokenType.KEYWORD,
            TokenType.IDENTIFIER,
            TokenType.EOL,
            TokenType.KEYWORD,
            TokenType.IDENTIFIER,
            TokenType.EOL,
            TokenType.EOF,
        ]

    def test_eol_value_is_the_physical_line(self) -> None:
        eol = _tokens("  class A")[2]
        assert eol.type == TokenType.EOL
        assert eol.value == "  class A"

    def test_crlf_line_endings(self) -> None:
        tokens = _tokens("class A\r\nclass B\r\n")
        assert [tok.value for tok in tokens if tok.type == TokenType.IDENTIFIER] == ["A", "B"]

    def test_line_and_column_tracking(self) -> None:
        tokens = _content("class A\n  class B")
        assert (tokens[0].line, tokens[0].column) == (1, 1)
        assert (tokens[1].line, tokens[1].column) == (1, 7)
        assert (tokens[2].line, tokens[2].column) == (2, 3)
        assert (tokens[3].line, tokens[3].column) == (2, 9)

    def test_lexer_is_restartable(self) -> None:
        lexer = Lexer("class A\nA --> B")
        assert list(lexer) == list(lexer)


# ###############
# Keywords and Identifiers
# ###############


class TestKeywords:
    @pytest.mark.parametrize(
        "word",
        ["class", "interface", "enum", "abstract", "package", "namespace", "note", "end", "as", "of", "extends"],
    )
    def test_keyword_recognized(self, word: str) -> None:
        tokens = _content(word)
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.KEYWORD
        assert tokens[0].value == word

    def test_keywords_case_insensitive_by_default(self) -> None:
        assert _types("CLASS Class") == [TokenType.KEYWORD, TokenType.KEYWORD]

    def test_keyword_value_keeps_source_spelling(self) -> None:
        assert _values("CLASS") == ["CLASS"]

    def test_case_sensitive_keywords_when_configured(self) -> None:
        tokens = [tok for tok in Lexer("CLASS class", case_insensitive_keywords=False) if tok.type != TokenType.EOL]
        assert [tok.type for tok in tokens] == [TokenType.IDENTIFIER, TokenType.KEYWORD, TokenType.EOF]

    def test_tokenize_forwards_case_sensitivity(self) -> None:
        tokens = tokenize("CLASS class", case_insensitive_keywords=False)
        assert [tok.type for tok in tokens if tok.type != TokenType.EOL] == [
            TokenType.IDENTIFIER,
            TokenType.KEYWORD,
            TokenType.EOF,
        ]

    def test_keyword_prefix_is_identifier(self) -> None:
        assert _types("classes") == [TokenType.IDENTIFIER]

    def test_startuml_is_keyword(self) -> None:
        assert _types("@startuml") == [TokenType.KEYWORD]

    def test_other_start_directive_is_identifier(self) -> None:
        tokens = _content("@startmindmap")
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == "@startmindmap"

    def test_is_keyword_helper(self) -> None:
        token = _content("Class")[0]
        assert token.is_keyword("class", "enum")
        assert not token.is_keyword("enum")


class TestIdentifiers:
    def test_dotted_name_is_single_identifier(self) -> None:
        assert _values("pkg.sub.Name") == ["pkg.sub.Name"]

    def test_trailing_dot_not_part_of_identifier(self) -> None:
        assert _types("A.") == [TokenType.IDENTIFIER, TokenType.SYMBOL]

    def test_underscore_and_dollar(self) -> None:
        assert _values("_private $ref") == ["_private", "$ref"]

    def test_directive_word(self) -> None:
        assert _values("!define X") == ["!define", "X"]


# ###############
# Arrows
# ###############


class TestArrows:
    @pytest.mark.parametrize(
        "arrow",
        ["-->", "<--", "<|--", "--|>", "..|>", "<|..", "*--", "--*", "o--", "--o", "..>", "<..", "--", "..", "<-->"],
    )
    def test_arrow_recognized(self, arrow: str) -> None:
        tokens = _content(f"A {arrow} B")
        assert [tok.type for tok in tokens] == [TokenType.IDENTIFIER, TokenType.ARROW, TokenType.IDENTIFIER]
        assert tokens[1].value == arrow

    def test_longest_match_wins(self) -> None:
        assert _values("A ---> B") == ["A", "--->", "B"]

    def test_arrow_without_spaces(self) -> None:
        assert _values("A-->B") == ["A", "-->", "B"]

    def test_single_dash_arrow(self) -> None:
        assert _values("A -> B") == ["A", "->", "B"]

    def test_aggregation_head_not_confused_with_identifier(self) -> None:
        # "-owner" is a visibility symbol followed by a name, not "-o" + "wner".
        assert _types("-owner") == [TokenType.SYMBOL, TokenType.IDENTIFIER]

    def test_visibility_symbols_are_symbols(self) -> None:
        assert _types("+ # ~") == [TokenType.SYMBOL, TokenType.SYMBOL, TokenType.SYMBOL]


# ###############
# Punctuation and Strings
# ###############


class TestPunctuation:
    def test_single_char_tokens(self) -> None:
        assert _types("{ } ( ) : ,") == [
            TokenType.LBRACE,
            TokenType.RBRACE,
            TokenType.LPAREN,
            TokenType.RPAREN,
            TokenType.COLON,
            TokenType.COMMA,
        ]

    def test_stereotype_brackets(self) -> None:
        assert _types("<<entity>>") == [TokenType.STEREO_OPEN, TokenType.IDENTIFIER, TokenType.STEREO_CLOSE]

    def test_generic_brackets(self) -> None:
        assert _types("Box<T>") == [TokenType.IDENTIFIER, TokenType.LANGLE, TokenType.IDENTIFIER, TokenType.RANGLE]


class TestStrings:
    def test_quoted_string_value_is_unquoted(self) -> None:
        tokens = _content('"hello world"')
        assert tokens[0].type == TokenType.STRING
        assert tokens[0].value == "hello world"
        assert not tokens[0].degraded

    def test_quotes_suppress_symbols(self) -> None:
        assert _values('"A --> B"') == ["A --> B"]

    def test_unterminated_string_runs_to_end_of_line(self) -> None:
        tokens = _content('"abc def\nclass A')
        assert tokens[0].type == TokenType.STRING
        assert tokens[0].value == "abc def"
        assert tokens[0].degraded
        assert tokens[1].line == 2


# ###############
# Comments
# ###############


class TestComments:
    def test_line_comment_skipped(self) -> None:
        tokens = _content("' a comment\nclass A")
        assert tokens[0].line == 2
        assert _values("' only a comment") == []

    def test_inline_block_comment_blanked_preserving_columns(self) -> None:
        tokens = _content("/' foo '/ class A")
        assert tokens[0].value == "class"
        assert tokens[0].column == 11

    def test_multiline_block_comment(self) -> None:
        tokens = _content("/' start\nclass Hidden\n'/\nclass Shown")
        assert [tok.value for tok in tokens] == ["class", "Shown"]
        assert tokens[0].line == 4

    def test_block_opener_inside_line_comment_is_ignored(self) -> None:
        tokens = _content("' see /' for block comments\nclass A\nclass B")
        assert [tok.value for tok in tokens] == ["class", "A", "class", "B"]
        assert tokens[0].line == 2

    def test_indented_line_comment(self) -> None:
        assert _values("   ' hidden /' text\nclass A") == ["class", "A"]

    def test_block_comment_marker_inside_string_is_text(self) -> None:
        assert _values("\"a /' b\" C") == ["a /' b", "C"]

    def test_eol_value_has_comment_blanked(self) -> None:
        eol = [tok for tok in _tokens("class A /' note '/") if tok.type == TokenType.EOL][0]
        assert eol.value == "class A"


# ###############
# Degraded Tokens
# ###############


class TestDegraded:
    def test_unknown_characters_fold_into_identifier(self) -> None:
        tokens = _content("???")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].degraded

    def test_lexer_never_fails_on_garbage(self) -> None:
        tokens = _tokens("§§ ¤¤ ??? `` \\\\")
        assert tokens[-1].type == TokenType.EOF

    def test_degraded_run_stops_at_structural_character(self) -> None:
        tokens = _content("??{")
        assert [tok.type for tok in tokens] == [TokenType.IDENTIFIER, TokenType.LBRACE]


# ###############
# Includes
# ###############


class TestIncludes:
    def test_unresolved_include_without_resolver(self) -> None:
        lexer = Lexer("!include missing.puml")
        tokens = list(lexer)
        assert [tok.type for tok in tokens] == [TokenType.EOF]
        assert len(lexer.diagnostics) == 1
        assert lexer.diagnostics[0].kind == DiagnosticKind.UNRESOLVED_INCLUDE
        assert lexer.diagnostics[0].severity == Severity.WARNING
        assert lexer.diagnostics[0].line == 1

    def test_included_tokens_are_spliced_in_place(self) -> None:
        resolver = MappingIncludeResolver({"inc.puml": "class B"})
        tokens = tokenize("class A\n!include inc.puml\nclass C", resolver)
        names = [(tok.value, tok.source) for tok in tokens if tok.type == TokenType.IDENTIFIER]
        assert names == [("A", None), ("B", "inc.puml"), ("C", None)]

    def test_included_tokens_carry_their_own_lines(self) -> None:
        resolver = MappingIncludeResolver({"inc.puml": "\n\nclass B"})
        tokens = tokenize("!include inc.puml", resolver)
        keyword = next(tok for tok in tokens if tok.type == TokenType.KEYWORD)
        assert keyword.line == 3

    def test_included_wrapper_lines_are_dropped(self) -> None:
        resolver = MappingIncludeResolver({"inc.puml": "@startuml\nclass B\n@enduml\n"})
        tokens = tokenize("@startuml\n!include inc.puml\n@enduml", resolver)
        keywords = [(tok.value, tok.source) for tok in tokens if tok.type == TokenType.KEYWORD]
        assert keywords == [("@startuml", None), ("class", "inc.puml"), ("@enduml", None)]

    def test_quoted_and_angle_bracket_targets(self) -> None:
        resolver = MappingIncludeResolver({"lib/x.puml": "class X"})
        for directive in ('!include "lib/x.puml"', "!include <lib/x.puml>"):
            assert "X" in [tok.value for tok in tokenize(directive, resolver)]

    def test_recursive_include_stops_at_depth_limit(self) -> None:
        resolver = MappingIncludeResolver({"self.puml": "!include self.puml"})
        lexer = Lexer("!include self.puml", resolver)
        list(lexer)
        assert [d.kind for d in lexer.diagnostics] == [DiagnosticKind.INCLUDE_DEPTH_EXCEEDED]

    def test_zero_depth_disables_includes(self) -> None:
        resolver = MappingIncludeResolver({"a.puml": "class A"})
        lexer = Lexer("!include a.puml", resolver, max_include_depth=0)
        assert [tok.type for tok in lexer] == [TokenType.EOF]
        assert lexer.diagnostics[0].kind == DiagnosticKind.INCLUDE_DEPTH_EXCEEDED

    def test_include_once_skips_repeats(self) -> None:
        resolver = MappingIncludeResolver({"a.puml": "class A"})
        tokens = tokenize("!include_once a.puml\n!include_once a.puml", resolver)
        assert [tok.value for tok in tokens].count("A") == 1

    def test_plain_include_repeats(self) -> None:
        resolver = MappingIncludeResolver({"a.puml": "class A"})
        tokens = tokenize("!include a.puml\n!include a.puml", resolver)
        assert [tok.value for tok in tokens].count("A") == 2

    def test_diagnostics_reset_on_restart(self) -> None:
        lexer = Lexer("!include missing.puml")
        list(lexer)
        list(lexer)
        assert len(lexer.diagnostics) == 1
