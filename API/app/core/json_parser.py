import json


def parse_llm_json(text: str) -> dict:
    """Parse the JSON object a model returned, ignoring prose around it.

    Only the span from the first ``{`` to the last ``}`` is parsed. Returns an
    empty dict when there is no such span or it is not valid JSON.
    """
    if not text:
        return {}
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        return {}
    try:
        data = json.loads(text[start : end + 1])
    except (json.JSONDecodeError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}
