"""Route pattern parsing and compilation.

This module implements the placeholder grammar used by route patterns:
- ``{name}`` matches one or more characters other than ``/``
- ``{name:subpattern}`` matches a custom regex fragment
- Shortcuts ``:i``, ``:a``, ``:al`` and ``:any`` expand to common fragments

Text outside placeholders is used as regex as-is, which allows optional
segments such as ``/posts(/{page:i})?``.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

DEFAULT_PARAMETER_REGEX = r"[^/]+"

PARAMETER_SHORTCUTS = {
    "i": r"[0-9]+",
    "a": r"[0-9A-Za-z]+",
    "al": r"[a-zA-Z0-9+_\-\.]+",
    "any": r".*",
}

_SHORTCUT_RE = re.compile(r":(any|al|a|i)}")
_NAME_RE = re.compile(r"\s*([a-zA-Z_][a-zA-Z0-9_-]*)\s*")


@dataclass(frozen=True)
class Placeholder:
    """A placeholder found in a route pattern."""

    name: str
    subpattern: Optional[str]
    start: int
    end: int

    @property
    def regex(self) -> str:
        """Regex fragment a value for this placeholder must match."""
        return self.subpattern if self.subpattern else DEFAULT_PARAMETER_REGEX


def expand_shortcuts(pattern: str) -> str:
    """Replace ``:<shortcut>}`` tokens with their full subpattern.

    Args:
        pattern: Raw route pattern

    Returns:
        Pattern with every shortcut expanded
    """
    return _SHORTCUT_RE.sub(lambda m: f":{PARAMETER_SHORTCUTS[m.group(1)]}}}", pattern)


def _find_closing_brace(pattern: str, start: int) -> int:
    """Return the index of the ``}`` closing a subpattern, or -1.

    Braces inside the subpattern must be balanced (``\\d{2,4}`` is fine).
    """
    depth = 0
    for index in range(start, len(pattern)):
        char = pattern[index]
        if char == "{":
            depth += 1
        elif char == "}":
            if depth == 0:
                return index
            depth -= 1
    return -1


def _parse_placeholder(pattern: str, start: int) -> Optional[Placeholder]:
    """Try to parse a placeholder whose ``{`` sits at ``start``."""
    name_match = _NAME_RE.match(pattern, start + 1)
    if not name_match:
        return None

    position = name_match.end()
    if position >= len(pattern):
        return None

    if pattern[position] == "}":
        return Placeholder(name_match.group(1), None, start, position + 1)

    if pattern[position] != ":":
        return None

    position += 1
    while position < len(pattern) and pattern[position].isspace():
        position += 1

    closing = _find_closing_brace(pattern, position)
    if closing < 0:
        return None

    subpattern = pattern[position:closing]
    return Placeholder(name_match.group(1), subpattern or None, start, closing + 1)


def scan_placeholders(pattern: str) -> List[Placeholder]:
    """Find all placeholders in a pattern, left to right.

    A ``{`` that does not open a valid placeholder (a regex quantifier in
    literal text, for example) is skipped.

    Args:
        pattern: Route pattern with shortcuts already expanded

    Returns:
        Placeholders in order of appearance
    """
    placeholders: List[Placeholder] = []
    position = pattern.find("{")

    while position >= 0:
        placeholder = _parse_placeholder(pattern, position)
        if placeholder is None:
            position = pattern.find("{", position + 1)
            continue
        placeholders.append(placeholder)
        position = pattern.find("{", placeholder.end)

    return placeholders


def substitute(pattern: str, placeholders: List[Placeholder], replacements: List[str]) -> str:
    """Splice replacement text over each placeholder span.

    Args:
        pattern: Pattern the placeholders were scanned from
        placeholders: Placeholders returned by scan_placeholders
        replacements: Text for each placeholder, same order

    Returns:
        The pattern with every placeholder replaced
    """
    parts = []
    cursor = 0
    for placeholder, replacement in zip(placeholders, replacements):
        parts.append(pattern[cursor : placeholder.start])
        parts.append(replacement)
        cursor = placeholder.end
    parts.append(pattern[cursor:])
    return "".join(parts)


@dataclass(frozen=True)
class CompiledPattern:
    """A route pattern compiled into an anchored, case-insensitive regex."""

    source: str
    regex: "re.Pattern[str]"
    placeholders: Tuple[Placeholder, ...]

    @property
    def parameter_names(self) -> List[str]:
        return [placeholder.name for placeholder in self.placeholders]

    def match(self, path: str) -> Optional[List[Optional[str]]]:
        """Match a decoded path.

        Args:
            path: Percent-decoded request path

        Returns:
            Captured values in placeholder order if matched, None otherwise.
            A placeholder inside an optional group that did not take part in
            the match yields None.
        """
        match = self.regex.fullmatch(path)
        if not match:
            return None
        return [match.group(f"_p{index}") for index in range(len(self.placeholders))]


def compile_pattern(pattern: str) -> CompiledPattern:
    """Compile a route pattern.

    Each placeholder becomes a named capturing group. Group names are
    generated, so capturing groups inside a custom subpattern do not shift
    the parameter order.

    Args:
        pattern: Route pattern

    Returns:
        CompiledPattern instance

    Raises:
        ValueError: If the resulting expression is not a valid regex
    """
    expanded = expand_shortcuts(pattern)
    placeholders = scan_placeholders(expanded)
    groups = [f"(?P<_p{index}>{p.regex})" for index, p in enumerate(placeholders)]
    expression = substitute(expanded, placeholders, groups)

    try:
        regex = re.compile(expression, re.IGNORECASE)
    except re.error as e:
        raise ValueError(f"Invalid route pattern [{pattern}]: {e}") from e

    return CompiledPattern(source=pattern, regex=regex, placeholders=tuple(placeholders))
