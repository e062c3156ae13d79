# tests/core/test_parser.py
import pytest

from tiny_console.core.errors import ParseError, UnterminatedQuote
from tiny_console.core.parser import join_tokens, raw_tails, scan, split_for_completion, tokenize


def test_tokenize_simple_command():
    """Whitespace runs separate tokens."""
    assert tokenize("math multiply   2\t4") == ["math", "multiply", "2", "4"]


def test_tokenize_quoted_span_is_one_token():
    assert tokenize('echo "hello   world" again') == ["echo", "hello   world", "again"]


def test_tokenize_escaped_quote_inside_quotes():
    assert tokenize('echo "say \\"hi\\""') == ["echo", 'say "hi"']


def test_tokenize_single_quote_is_ordinary():
    assert tokenize("echo it's fine") == ["echo", "it's", "fine"]


def test_tokenize_hash_is_not_a_comment():
    """Comment lines are the script executor's business, not the tokenizer's."""
    assert tokenize("echo #1") == ["echo", "#1"]


@pytest.mark.parametrize("line", ["", "   ", "\t\n", None])
def test_tokenize_blank_line_yields_no_tokens(line):
    assert tokenize(line) == []


def test_tokenize_unterminated_quote_raises():
    with pytest.raises(UnterminatedQuote) as exc_info:
        tokenize('echo "abc')
    assert isinstance(exc_info.value, ParseError)
    assert "Unterminated quote" in str(exc_info.value)


def test_tokenize_empty_quotes_yield_empty_token():
    assert tokenize('alias x ""') == ["alias", "x", ""]


def test_split_for_completion_partial_word():
    assert split_for_completion("math mul") == (["math", "mul"], "mul")


def test_split_for_completion_trailing_space_starts_new_token():
    assert split_for_completion("math ") == (["math", ""], "")


def test_split_for_completion_empty_line():
    assert split_for_completion("") == ([""], "")


def test_split_for_completion_open_quote_falls_back():
    """An unfinished quote must not break completion while typing."""
    parts, prefix = split_for_completion('echo "abc')
    assert parts == ["echo", "abc"]
    assert prefix == "abc"


def test_join_tokens_quotes_when_needed():
    assert join_tokens(["echo", "hello world"]) == 'echo "hello world"'
    assert join_tokens(["set", ""]) == 'set ""'


@pytest.mark.parametrize("tokens", [
    ["echo", "plain"],
    ["echo", "two words", "x"],
    ["say", 'he said "hi"'],
    ["path", "C:\\temp\\file"],
    ["blank", ""],
])
def test_join_tokens_is_inverse_of_tokenize(tokens):
    assert tokenize(join_tokens(tokens)) == tokens


def test_tokenize_keeps_backslashes_outside_quotes():
    """Windows-style paths survive without quoting."""
    assert tokenize(r"exec C:\scripts\boot") == ["exec", r"C:\scripts\boot"]
    assert tokenize(r"echo a\ b") == ["echo", "a\\", "b"]


def test_tokenize_backslash_inside_quotes_is_literal_unless_escaping():
    assert tokenize(r'exec "C:\my scripts\boot"') == ["exec", r"C:\my scripts\boot"]
    assert tokenize(r'echo "a\\b"') == ["echo", r"a\b"]


def test_tokenize_adjacent_quoted_part_joins_the_token():
    assert tokenize('set name="John Smith" x') == ["set", "name=John Smith", "x"]


def test_scan_reports_source_spans():
    line = 'say  "hi there"  now'
    tokens = scan(line)
    assert [t.text for t in tokens] == ["say", "hi there", "now"]
    assert [(t.start, t.end) for t in tokens] == [(0, 3), (5, 15), (17, 20)]
    assert line[tokens[1].start:tokens[1].end] == '"hi there"'


def test_scan_max_tokens_ignores_the_rest_of_the_line():
    """An open quote past the limit is not an error."""
    tokens = scan('"hp" 5 "open', max_tokens=1)
    assert tokens == [("hp", 0, 4)]


def test_raw_tails_keep_quotes_and_inner_spacing():
    line = 'eval say("hello world")   '
    assert raw_tails(line, scan(line)) == ['eval say("hello world")', 'say("hello world")']
