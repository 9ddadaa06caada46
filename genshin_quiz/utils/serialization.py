import json
from typing import Any, Optional


def encode_options(options: Any) -> Optional[str]:
    # Already-encoded text is stored untouched
    if isinstance(options, (list, tuple)):
        return json.dumps(list(options), ensure_ascii=False)
    return options


def decode_options(raw: Optional[str]):
    if raw is None or raw == "":
        return None
    if isinstance(raw, (list, tuple)):
        return list(raw)
    return json.loads(raw)


def encode_answer(answer: Any) -> Optional[str]:
    """Text answers are stored as given; lists and mappings are stored as JSON text."""
    if answer is None or isinstance(answer, str):
        return answer
    if isinstance(answer, (list, tuple, dict)):
        return json.dumps(answer, ensure_ascii=False)
    # numbers and booleans keep their JSON spelling: 60, true
    return json.dumps(answer)


def decode_answer(raw: Optional[str]):
    if raw is None or not raw.lstrip().startswith(("[", "{")):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def format_percentage(part, whole) -> str:
    """Share of `whole` as a percentage string with two decimals, "0.00" for an empty whole."""
    if not whole:
        return "0.00"
    return f"{(part / whole) * 100:.2f}"
