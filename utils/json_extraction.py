# utils/json_extraction.py
from typing import Optional


def extract_json_object(text: str) -> Optional[str]:
    """Extract the first complete JSON object from text."""
    if not text:
        return None

    start = text.find('{')
    if start == -1:
        return None

    brace_count = 0
    in_string = False
    escaped = False
    for i, char in enumerate(text[start:], start):
        if in_string:
            if escaped:
                escaped = False
            elif char == '\\':
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == '{':
            brace_count += 1
        elif char == '}':
            brace_count -= 1
            if brace_count == 0:
                return text[start:i+1]
    return None
