"""Utility functions and constants for the stream parser."""
import re
from functools import lru_cache
from typing import Optional

ENTITIES = {"lt": "<", "gt": ">", "amp": "&", "quot": '"', "apos": "'"}

_ENTITY_RE = re.compile(r'&(lt|gt|amp|quot|apos);')


def decode_entities(text: str) -> str:
    """Decode the five standard markup entities in a single pass.

    Each entity is replaced exactly once, so `&amp;lt;` becomes `&lt;`
    and not `<`.
    """
    if '&' not in text:
        return text
    return _ENTITY_RE.sub(lambda m: ENTITIES[m.group(1)], text)


@lru_cache(maxsize=128)
def _attribute_patterns(attr: str):
    name = re.escape(attr)
    return (
        re.compile(r'(?<![\w-])' + name + r'="([^"]*)"'),
        re.compile(r'(?<![\w-])' + name + r"='([^']*)'"),
    )


def extract_attribute(tag: str, attr: str) -> Optional[str]:
    """Return the value of `attr` in a raw tag, or None when absent.

    Double-quoted values are looked up before single-quoted ones so a
    value like text="Fasthr's Reward" survives intact.
    """
    for pattern in _attribute_patterns(attr):
        m = pattern.search(tag)
        if m:
            return m.group(1)
    return None


def inner_text(whole_tag: str, name: str) -> str:
    """Body between the first `>` and the last `</name>` of a paired tag."""
    start = whole_tag.find('>')
    end = whole_tag.rfind(f'</{name}>')
    if start == -1 or end == -1 or end < start:
        return ""
    return whole_tag[start + 1:end]


def strip_tags(text: str) -> str:
    return re.sub(r'<[^>]+>', '', text)


_TOKEN_NUMBER_RE = re.compile(r'[^0-9]*([0-9]+)[^0-9]*')


def parse_int(value: Optional[str], default: Optional[int] = 0) -> Optional[int]:
    """Parse a non-negative integer attribute, falling back to `default`."""
    if value is None:
        return default
    value = value.strip()
    if not re.fullmatch(r'[0-9]+', value):
        return default
    return int(value)


def _token_number(token: str) -> Optional[int]:
    m = _TOKEN_NUMBER_RE.fullmatch(token)
    return int(m.group(1)) if m else None


def first_number(text: str) -> Optional[int]:
    """First whitespace-separated token in `text` that is a number once
    surrounding punctuation is trimmed."""
    for token in text.split():
        n = _token_number(token)
        if n is not None:
            return n
    return None


def last_number(text: str) -> Optional[int]:
    """Last whitespace-separated token in `text` that is a number."""
    for token in reversed(text.split()):
        n = _token_number(token)
        if n is not None:
            return n
    return None
