import json

import pytest

from brandscape.errors import ParseError, ParseErrorKind
from brandscape.utils.json_parser import (
    parse_json_object,
    parse_name_suggestions,
    parse_palette_line,
    parse_palette_lines,
    split_name_pair,
)
from conftest import PALETTE_LINES


def _suggestions(n):
    return {"suggestions": [{"title": f"Name {i}", "description": f"Idea {i}"} for i in range(n)]}


def test_parse_json_object_direct_fenced_and_embedded():
    assert parse_json_object('{"a": 1}') == {"a": 1}
    assert parse_json_object('Here you go:\n```json\n{"a": 2}\n```') == {"a": 2}
    assert parse_json_object('Sure! {"a": "has } brace", "b": 3} Hope that helps') == {"a": "has } brace", "b": 3}


@pytest.mark.parametrize("raw", ["", "   ", "I cannot help with that."])
def test_parse_json_object_without_json(raw):
    with pytest.raises(ParseError) as exc:
        parse_json_object(raw)
    assert exc.value.kind is ParseErrorKind.NO_JSON_FOUND


def test_parse_name_suggestions_returns_first_expected():
    suggestions = parse_name_suggestions(json.dumps(_suggestions(6)), expected=5)
    assert [s["title"] for s in suggestions] == [f"Name {i}" for i in range(5)]
    assert suggestions[0]["description"] == "Idea 0"


def test_parse_name_suggestions_accepts_nested_response_string():
    wrapped = json.dumps({"response": json.dumps(_suggestions(5))})
    assert len(parse_name_suggestions(wrapped)) == 5


def test_parse_name_suggestions_too_few():
    with pytest.raises(ParseError) as exc:
        parse_name_suggestions(json.dumps(_suggestions(3)))
    assert exc.value.kind is ParseErrorKind.FORMAT_MISMATCH


def test_parse_name_suggestions_without_array():
    with pytest.raises(ParseError) as exc:
        parse_name_suggestions('{"names": "Loom Lane"}')
    assert exc.value.kind is ParseErrorKind.FORMAT_MISMATCH


def test_parse_palette_lines():
    palettes = parse_palette_lines(PALETTE_LINES)
    assert len(palettes) == 5
    first = palettes[0]
    assert (first.hex1, first.hex2) == ("#0B5394", "#F4B183")
    assert (first.name1, first.name2) == ("Deep Navy", "Warm Apricot")
    assert first.explanation.startswith("Trustworthy")


def test_parse_palette_line_normalizes_case():
    palette = parse_palette_line("#0b5394, #f4b183 - Navy & Apricot - Trustworthy and friendly colors.")
    assert palette.hex1 == "#0B5394"
    assert palette.hex2 == "#F4B183"


def test_parse_palette_lines_wrong_count():
    four = "\n".join(PALETTE_LINES.splitlines()[:4])
    with pytest.raises(ParseError) as exc:
        parse_palette_lines(four)
    assert exc.value.kind is ParseErrorKind.FORMAT_MISMATCH


def test_parse_palette_lines_duplicate_pairs():
    lines = PALETTE_LINES.splitlines()
    lines[4] = lines[0]
    with pytest.raises(ParseError):
        parse_palette_lines("\n".join(lines))


def test_parse_palette_lines_bad_line():
    lines = PALETTE_LINES.splitlines()
    lines[2] = "Goldenrod and sky blue would look nice"
    with pytest.raises(ParseError):
        parse_palette_lines("\n".join(lines))


def test_split_name_pair():
    assert split_name_pair("Slate and Warm Yellow") == ["Slate", "Warm Yellow"]
    assert split_name_pair("Teal") == ["Teal", ""]
