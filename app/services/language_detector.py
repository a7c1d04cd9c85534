import re

# Arabic Unicode block.
_ARABIC_SCRIPT_PATTERN = re.compile(r"[\u0600-\u06FF]")


def is_arabic(text: str | None) -> bool:
    if not text:
        return False
    return _ARABIC_SCRIPT_PATTERN.search(text) is not None
