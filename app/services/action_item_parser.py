from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

_BULLET_PATTERN = re.compile(r"^\s*[-*•]\s+")
_RULE_PATTERN = re.compile(r"^[\s\-*•_=]+$")
_OWNER_PATTERN = re.compile(r"\(@([^)]*)\)")
_DEADLINE_PATTERN = re.compile(r"\[([^\]]*)\]")
_WHITESPACE_PATTERN = re.compile(r"\s{2,}")


@dataclass
class ParsedActionItem:
    text: str
    owner: str | None = None
    deadline: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "owner": self.owner,
            "deadline": self.deadline,
        }


def parse_action_items(raw_text: str | None) -> list[ParsedActionItem]:
    """Split LLM action-item output into discrete items.

    Only lines that start with a bullet marker followed by whitespace are
    items; markdown rules and bold headings are skipped. An item may carry an
    ``(@owner)`` token and a ``[deadline]`` token anywhere on the line; both
    are removed from the item text.
    """
    if not raw_text:
        return []

    items: list[ParsedActionItem] = []
    for line in raw_text.splitlines():
        bullet_match = _BULLET_PATTERN.match(line)
        if not bullet_match or _RULE_PATTERN.match(line):
            continue
        body = line[bullet_match.end() :]

        owner_match = _OWNER_PATTERN.search(body)
        deadline_match = _DEADLINE_PATTERN.search(body)
        text = _DEADLINE_PATTERN.sub("", _OWNER_PATTERN.sub("", body))
        text = _WHITESPACE_PATTERN.sub(" ", text).strip(" \t-:,")
        if not text:
            continue

        items.append(
            ParsedActionItem(
                text=text,
                owner=_clean_token(owner_match.group(1)) if owner_match else None,
                deadline=_clean_token(deadline_match.group(1)) if deadline_match else None,
            ),
        )
    return items


def _clean_token(value: str) -> str | None:
    cleaned = value.strip()
    return cleaned or None
