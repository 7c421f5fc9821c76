"""Tests for the styled text storage encoding."""
import base64
import json
import random

import pytest

from daybook.core.errors import DecodeError
from daybook.features.richtext.codec import decode, decode_or_empty, encode
from daybook.features.richtext.model import Style, StyledText


def _formatted() -> StyledText:
    styled = StyledText.plain("Morning run\nWrote the report\nCalled mum")
    styled = styled.toggle_bold(0, 7)
    styled = styled.toggle_italic(4, 20)
    styled = styled.toggle_underline(12, 16)
    styled = styled.toggle_bullet_for_paragraph(13, 30)
    return styled.toggle_bold(0, 7)


def test_round_trip_preserves_text_and_styles():
    styled = _formatted()
    restored = decode(encode(styled))
    assert restored == styled
    assert restored.plain_text == styled.plain_text
    for index in range(len(styled)):
        assert restored.styles_at(index) == styled.styles_at(index)


def _random_edits(seed: int, steps: int = 40) -> StyledText:
    rng = random.Random(seed)
    styled = StyledText.plain("Gym at seven\nLunch with Sam\nShipped the release")
    pieces = ["a", "word ", "\nnext line", "", " \t", "done."]
    for _ in range(steps):
        start = rng.randint(0, len(styled))
        end = rng.randint(start, len(styled))
        action = rng.choice(["bold", "italic", "underline", "bullet", "replace"])
        if action == "bold":
            styled = styled.toggle_bold(start, end)
        elif action == "italic":
            styled = styled.toggle_italic(start, end)
        elif action == "underline":
            styled = styled.toggle_underline(start, end)
        elif action == "bullet":
            styled = styled.toggle_bullet_for_paragraph(start, end)
        else:
            styled = styled.replace(start, end, rng.choice(pieces))
    return styled


@pytest.mark.parametrize("seed", range(12))
def test_round_trip_after_random_formatting(seed):
    styled = _random_edits(seed)
    restored = decode(encode(styled))
    assert restored == styled
    assert restored.plain_text == styled.plain_text
    assert [restored.styles_at(i) for i in range(len(styled))] == [
        styled.styles_at(i) for i in range(len(styled))
    ]


def test_round_trip_empty():
    assert decode(encode(StyledText())) == StyledText()


def test_encoding_is_a_json_run_list():
    payload = json.loads(encode(StyledText.plain("hey").toggle_bold(0, 1)))
    assert payload["text"] == "hey"
    assert payload["runs"] == [
        {"start": 0, "end": 1, "styles": ["bold"]},
        {"start": 1, "end": 3, "styles": []},
    ]


@pytest.mark.parametrize(
    "raw",
    [
        "not json at all",
        base64.b64encode(b"bplist00 legacy archive").decode(),
        '{"text": "abc"',
        '{"text": "abc", "runs": [{"start": 0, "end": 2, "styles": []}]}',
        '{"text": "abc", "runs": [{"start": 0, "end": 3, "styles": ["sparkle"]}]}',
        '{"text": "abc", "runs": [], "version": 2}',
    ],
)
def test_decode_rejects_malformed_payloads(raw):
    with pytest.raises(DecodeError) as exc_info:
        decode(raw)
    assert exc_info.value.code == "decode_error"


def test_decode_or_empty_substitutes_empty_document():
    assert decode_or_empty("garbage") == StyledText()
    assert decode_or_empty(None) == StyledText()
    assert decode_or_empty("") == StyledText()


def test_decode_or_empty_keeps_valid_payload():
    styled = StyledText.plain("keep me").toggle_underline(0, 4)
    restored = decode_or_empty(encode(styled))
    assert restored.styles_at(0) == {Style.UNDERLINE}
