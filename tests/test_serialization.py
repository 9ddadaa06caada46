import pytest

from genshin_quiz.utils.serialization import decode_answer, encode_answer, format_percentage


def test_text_answers_are_stored_untouched():
    assert encode_answer("Mora") == "Mora"
    assert encode_answer(None) is None


def test_structured_answers_round_trip():
    for answer in (["Mora", "Primogem"], {"value": 60, "unit": "AR"}):
        stored = encode_answer(answer)
        assert isinstance(stored, str)
        assert decode_answer(stored) == answer


@pytest.mark.parametrize("raw", ["60", "true", "null", "Mora", "[not json"])
def test_scalar_rows_decode_as_text(raw):
    assert decode_answer(raw) == raw


def test_numbers_keep_their_json_spelling():
    assert encode_answer(60) == "60"
    assert encode_answer(True) == "true"


def test_format_percentage():
    assert format_percentage(1, 3) == "33.33"
    assert format_percentage(0, 0) == "0.00"
