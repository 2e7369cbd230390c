"""Tests for the command line tokenizer."""

from __future__ import annotations

import os

import pytest
from conftest import words

from sqshell.errors import CommandLineSyntaxError, ShellError
from sqshell.shell import ShellRunner
from sqshell.tokenizer import CommandLineTokenizer, split_fields, tokenize
from sqshell.tokens import (
    FdDupToken,
    PipeToken,
    RedirectOutToken,
    SessionRedirectToken,
    TerminatorToken,
    WordToken,
)


class FakeRunner(ShellRunner):
    """A shell runner that returns canned output and remembers commands."""

    def __init__(self, output: str = "", fail: bool = False) -> None:
        super().__init__()
        self.output = output
        self.fail = fail
        self.commands: list[str] = []

    def run(self, command_line: str) -> str:
        self.commands.append(command_line)
        if self.fail:
            raise ShellError("No such file or directory")
        return self.output


# ---------------------------------------------------------------------------
# Words, quoting and escapes
# ---------------------------------------------------------------------------


class TestWords:
    def test_simple_words(self, lex):
        assert lex("a b   c") == words("a", "b", "c")

    def test_empty_line(self, lex):
        assert lex("") == []
        assert lex("   \t ") == []

    def test_command_keeps_initial_escape(self, lex):
        assert lex("\\echo hello") == words("\\echo", "hello")

    def test_initial_escape_removed_when_disabled(self, lex):
        assert lex("\\echo hello", retain_initial_escape=False) == words(
            "echo", "hello"
        )

    def test_only_first_token_keeps_escape(self, lex):
        assert lex("\\echo \\x") == words("\\echo", "x")

    def test_mashed_string(self, lex):
        assert lex("this' is a '\"single\"\\ string") == words(
            "this is a single string"
        )

    def test_single_quotes_are_verbatim(self, lex):
        assert lex("'a \\b $a'") == words("a \\b $a")

    def test_double_quotes_process_escapes(self, lex):
        assert lex('"say \\"hi\\""') == words('say "hi"')

    def test_escaped_space_joins_words(self, lex):
        assert lex("a\\ b c") == words("a b", "c")

    def test_retain_double_quotes(self, lex):
        assert lex('"a b" c', retain_double_quotes=True) == words('"a b"', "c")

    def test_retain_double_quotes_inside_word(self, lex):
        assert lex('x."my table"', retain_double_quotes=True) == words(
            'x."my table"'
        )

    def test_positions(self, lex):
        tokens = lex("ab  cd")
        assert [t.position for t in tokens] == [0, 4]
        assert all(t.line == "ab  cd" for t in tokens)

    def test_tokenizing_twice_gives_same_tokens(self, lex):
        line = "\\echo 'a b' \"$a\" c\\ d 2>&1 >> out.txt; | grep x"
        first = lex(line, terminator=";")
        second = lex(line, terminator=";")
        assert first == second
        assert [t.position for t in first] == [t.position for t in second]
        assert [type(t) for t in first] == [
            WordToken,
            WordToken,
            WordToken,
            WordToken,
            FdDupToken,
            RedirectOutToken,
            TerminatorToken,
            PipeToken,
        ]

    def test_plain_words_match_their_source(self, lex):
        line = "select  col_1 from\tmy_table ; 'q' > out.txt"
        plain = [
            t
            for t in lex(line, terminator=";")
            if isinstance(t, WordToken) and line[t.position] != "'"
        ]
        assert [t.text for t in plain] == ["select", "col_1", "from", "my_table"]
        for token in plain:
            end = token.position + len(token.text)
            assert line[token.position : end] == token.text

    def test_iteration(self, variables):
        tokenizer = CommandLineTokenizer("a b", expander=variables)
        assert [str(t) for t in tokenizer] == ["a", "b"]
        assert tokenizer.next() is None


# ---------------------------------------------------------------------------
# Variable expansion
# ---------------------------------------------------------------------------


class TestVariables:
    def test_simple_variable(self, lex):
        assert lex("$a") == words("hello")

    def test_expanded_value_is_not_expanded_again(self, lex):
        assert lex("$x") == words("this is $x")

    def test_braces_concatenate(self, lex):
        assert lex("${a}${b}") == words("helloworld")

    def test_not_expanded_in_single_quotes(self, lex):
        assert lex("'$a'") == words("$a")

    def test_expanded_in_double_quotes(self, lex):
        assert lex('"$a $b"') == words("hello world")

    def test_undefined_variable_left_alone(self, lex):
        assert lex("$nope ${nope}") == words("$nope", "${nope}")

    def test_escaped_dollar(self, lex):
        assert lex("x \\$a") == words("x", "$a")

    def test_escaped_dollar_in_double_quotes(self, lex):
        assert lex('"\\$a and $a"') == words("$a and hello")

    def test_double_dollar(self, lex):
        assert lex("cost$$") == words("cost$")

    def test_no_expander(self):
        assert tokenize("$a", expander=None) == words("$a")

    def test_environment_expander(self, monkeypatch):
        monkeypatch.setenv("SQSHELL_TEST_VALUE", "from env")
        assert tokenize('"$SQSHELL_TEST_VALUE"') == words("from env")

    def test_variable_value_does_not_split(self, lex):
        assert lex("$x!") == words("this is $x!")


# ---------------------------------------------------------------------------
# Redirection and pipes
# ---------------------------------------------------------------------------


class TestRedirection:
    def test_redirect(self, lex):
        assert lex("\\echo hi > out.txt") == words("\\echo", "hi") + [
            RedirectOutToken(fd=1, filename="out.txt")
        ]

    def test_redirect_without_space(self, lex):
        assert lex("hi>out.txt") == words("hi") + [
            RedirectOutToken(fd=1, filename="out.txt")
        ]

    def test_append(self, lex):
        assert lex(">> out.txt") == [
            RedirectOutToken(fd=1, filename="out.txt", append=True)
        ]

    def test_descriptor(self, lex):
        assert lex("2>err.txt") == [RedirectOutToken(fd=2, filename="err.txt")]

    def test_descriptor_must_touch(self, lex):
        assert lex("2 >err.txt") == words("2") + [
            RedirectOutToken(fd=1, filename="err.txt")
        ]

    def test_multi_digit_is_a_word(self, lex):
        assert lex("992>x") == words("992") + [RedirectOutToken(fd=1, filename="x")]

    def test_variable_before_redirect(self, lex):
        assert lex("$a>x") == words("hello") + [RedirectOutToken(fd=1, filename="x")]

    def test_filename_is_expanded(self, lex):
        assert lex("> $a.txt") == [RedirectOutToken(fd=1, filename="hello.txt")]

    def test_filename_never_keeps_double_quotes(self, lex):
        assert lex('"a" > "my file"', retain_double_quotes=True) == [
            WordToken(text='"a"'),
            RedirectOutToken(fd=1, filename="my file"),
        ]

    def test_missing_filename(self, lex):
        with pytest.raises(
            CommandLineSyntaxError, match="Expected a target filename"
        ):
            lex("\\echo hi >")

    def test_pipe_instead_of_filename(self, lex):
        with pytest.raises(
            CommandLineSyntaxError, match="Expected a target filename"
        ):
            lex("\\echo hi > | cat")

    def test_terminator_instead_of_filename(self, lex):
        with pytest.raises(
            CommandLineSyntaxError, match="Expected a target filename"
        ):
            lex("\\echo hi > ;", terminator=";")

    def test_fd_dup(self, lex):
        assert lex("2>&1") == [FdDupToken(from_fd=2, to_fd=1)]

    def test_fd_dup_default_descriptor(self, lex):
        assert lex(">&2") == [FdDupToken(from_fd=1, to_fd=2)]

    def test_fd_dup_with_space(self, lex):
        assert lex("2>& 1") == [FdDupToken(from_fd=2, to_fd=1)]

    def test_fd_dup_needs_number(self, lex):
        with pytest.raises(CommandLineSyntaxError, match="Expected a number"):
            lex("2>&x")

    def test_session_redirect(self, lex):
        assert lex(">+") == [SessionRedirectToken()]

    def test_session_redirect_with_id(self, lex):
        assert lex(">>+3") == [SessionRedirectToken(session_id=3, append=True)]

    def test_pipe(self, lex):
        assert lex("\\echo hi |  grep  'h' $a") == words("\\echo", "hi") + [
            PipeToken(command="grep  'h' $a")
        ]

    def test_pipe_needs_command(self, lex):
        with pytest.raises(CommandLineSyntaxError, match="Expected a command"):
            lex("\\echo hi |   ")

    def test_redirect_then_pipe(self, lex):
        assert lex("a 2>&1 | more") == words("a") + [
            FdDupToken(from_fd=2, to_fd=1),
            PipeToken(command="more"),
        ]


# ---------------------------------------------------------------------------
# Terminators
# ---------------------------------------------------------------------------


class TestTerminator:
    def test_semicolon(self, lex):
        assert lex("select 1;", terminator=";") == words("select", "1") + [
            TerminatorToken(char=";")
        ]

    def test_quoted_words_then_terminator(self, lex):
        line = "\\echo one two 'the number three' \"the number four\";"
        assert lex(line, terminator=";") == words(
            "\\echo", "one", "two", "the number three", "the number four"
        ) + [TerminatorToken(char=";")]

    def test_separate_comma(self, lex):
        assert lex("a b , c", terminator=",") == words("a", "b") + [
            TerminatorToken(char=","),
            WordToken(text="c"),
        ]

    def test_no_terminator_configured(self, lex):
        assert lex("select 1;") == words("select", "1;")

    def test_comma(self, lex):
        assert lex("a,b", terminator=",") == [
            WordToken(text="a"),
            TerminatorToken(char=","),
            WordToken(text="b"),
        ]

    def test_letter(self, lex):
        assert lex("abc", terminator="b") == [
            WordToken(text="a"),
            TerminatorToken(char="b"),
            WordToken(text="c"),
        ]

    def test_quoted_terminator(self, lex):
        assert lex("'a;b' \"c;d\"", terminator=";") == words("a;b", "c;d")

    def test_terminator_position(self, lex):
        tokens = lex("go;", terminator=";")
        assert tokens[-1].position == 2

    def test_terminator_must_be_one_character(self):
        with pytest.raises(ValueError):
            CommandLineTokenizer("x", terminator=";;")


# ---------------------------------------------------------------------------
# Backticks
# ---------------------------------------------------------------------------


class TestBackticks:
    def test_output_is_split(self, lex):
        runner = FakeRunner("how are you\n")
        assert lex("\\echo hello `echo \"how are you\"`", shell_runner=runner) == (
            words("\\echo", "hello", "how", "are", "you")
        )
        assert runner.commands == ['echo "how are you"']

    def test_command_is_rebuilt_with_expansion(self, lex):
        runner = FakeRunner("x")
        lex("`echo $a '$b' \"$a\"`", shell_runner=runner)
        assert runner.commands == ["echo hello '$b' \"hello\""]

    def test_empty_output_produces_nothing(self, lex):
        runner = FakeRunner("")
        assert lex("a `true` b", shell_runner=runner) == words("a", "b")

    def test_only_backtick_with_no_output(self, lex):
        assert lex("`true`", shell_runner=FakeRunner("\n")) == []

    def test_field_separator(self, lex):
        runner = FakeRunner("a:b::c d\n")
        assert lex("`x`", shell_runner=runner, field_separator=":") == words(
            "a", "b", "c d"
        )

    def test_backticks_disabled(self, lex):
        runner = FakeRunner("nope")
        assert lex("a`b c`", shell_runner=runner, expand_backticks=False) == words(
            "a`b", "c`"
        )
        assert runner.commands == []

    def test_backtick_in_single_quotes(self, lex):
        runner = FakeRunner("nope")
        assert lex("'`b`'", shell_runner=runner) == words("`b`")
        assert runner.commands == []

    def test_missing_closing_backtick(self, lex):
        with pytest.raises(CommandLineSyntaxError, match="Missing closing back-tick"):
            lex("a `echo hi", shell_runner=FakeRunner())

    def test_failed_command(self, lex):
        with pytest.raises(CommandLineSyntaxError, match="Failed to execute: bad"):
            lex("`bad`", shell_runner=FakeRunner(fail=True))

    @pytest.mark.skipif(os.name == "nt", reason="needs /bin/sh")
    def test_real_shell(self, lex):
        assert lex("\\echo `echo hello world`") == words("\\echo", "hello", "world")


class TestSplitFields:
    def test_whitespace(self):
        assert split_fields(" a\tb\n\nc \n", " \t\n\r") == ["a", "b", "c"]

    def test_trailing_newlines_stripped(self):
        assert split_fields("a:b\r\n", ":") == ["a", "b"]

    def test_no_separator(self):
        assert split_fields("a b\n", "") == ["a b"]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrors:
    def test_unclosed_single_quote(self, lex):
        with pytest.raises(CommandLineSyntaxError) as exc_info:
            lex("abc 'def")
        err = exc_info.value
        assert err.message == "Closing single quote not found"
        assert err.position == 4
        assert err.line == "abc 'def"

    def test_unclosed_double_quote(self, lex):
        with pytest.raises(CommandLineSyntaxError, match="Closing double quote"):
            lex('"abc')

    def test_trailing_escape(self, lex):
        with pytest.raises(
            CommandLineSyntaxError, match="Expected character following"
        ):
            lex("abc\\")

    @pytest.mark.parametrize("line", ["a & b", "a < b"])
    def test_stray_operator(self, lex, line):
        with pytest.raises(CommandLineSyntaxError, match="Unexpected"):
            lex(line)

    def test_format_points_at_problem(self, lex):
        with pytest.raises(CommandLineSyntaxError) as exc_info:
            lex("ab 'cd")
        formatted = exc_info.value.format()
        lines = formatted.splitlines()
        assert lines[0] == "Closing single quote not found"
        assert lines[1] == "  ab 'cd"
        assert lines[2] == "     ^"


class TestTokenStrings:
    def test_redirect(self):
        assert str(RedirectOutToken(fd=2, filename="x", append=True)) == "2>>x"

    def test_fd_dup(self):
        assert str(FdDupToken(from_fd=2, to_fd=1)) == "2>&1"

    def test_session_redirect(self):
        assert str(SessionRedirectToken()) == ">+"
        assert str(SessionRedirectToken(session_id=4, append=True)) == ">>+4"

    def test_equality_ignores_position(self):
        assert WordToken(text="a", position=3) == WordToken(text="a", position=9)
