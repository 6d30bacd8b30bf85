# posyandu/wizard/tags.py
"""
Tag-set reducer for multi-select fields.

A "none" sentinel (e.g. "Tidak Ada") is mutually exclusive with every
other tag of its vocabulary.
"""
from __future__ import annotations

from typing import Iterable, List, Optional

from posyandu.wizard.vocabularies import TagVocabulary


def _dedupe(tags: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for tag in tags:
        if tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result


def normalize_tags(
    previous: Iterable[str],
    incoming: Iterable[str],
    none_sentinel: Optional[str],
) -> List[str]:
    """
    Apply the sentinel rule to a new selection.

    - incoming gains the sentinel that previous did not have -> [sentinel]
    - previous had the sentinel and incoming has more than one tag -> drop the sentinel
    - otherwise incoming passes through unchanged
    """
    previous = list(previous)
    incoming = _dedupe(incoming)
    if not none_sentinel:
        return incoming

    had_none = none_sentinel in previous
    has_none = none_sentinel in incoming

    if has_none and not had_none:
        return [none_sentinel]
    if had_none and len(incoming) > 1:
        return [t for t in incoming if t != none_sentinel]
    return incoming


def order_tags(tags: Iterable[str], vocabulary: Optional[TagVocabulary]) -> List[str]:
    """Sort by vocabulary position; tags outside the vocabulary keep their order at the end."""
    tags = list(tags)
    if vocabulary is None:
        return tags
    return sorted(tags, key=vocabulary.position)


def reduce_tags(
    previous: Iterable[str],
    incoming: Iterable[str],
    vocabulary: Optional[TagVocabulary],
) -> List[str]:
    sentinel = vocabulary.none_sentinel if vocabulary else None
    return order_tags(normalize_tags(previous, incoming, sentinel), vocabulary)


def toggle_tag(
    current: Iterable[str],
    tag: str,
    none_sentinel: Optional[str],
    vocabulary: Optional[TagVocabulary] = None,
) -> List[str]:
    """
    Flip one tag in or out of the selection and normalise the result.

    Toggling the same ordinary tag twice restores the original selection.
    Selecting the sentinel collapses the set to [sentinel]; selecting any
    other tag while [sentinel] is active yields just that tag.
    """
    current = list(current)
    if tag in current:
        incoming = [t for t in current if t != tag]
    else:
        incoming = current + [tag]

    result = normalize_tags(current, incoming, none_sentinel)
    return order_tags(result, vocabulary)
