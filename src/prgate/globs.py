"""Path glob matching for policy rules.

Patterns are matched against the full POSIX relative path:

- ``*`` and ``?`` never cross ``/``; both match leading dots.
- ``**`` as a whole path segment matches zero or more segments.
- ``[abc]``, ``[!abc]``/``[^abc]`` character classes.
- ``{a,b}`` brace alternatives, nested allowed.

A pattern without ``/`` is not matched against the basename alone:
``*.md`` matches ``README.md`` but not ``docs/guide.md``.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, List, Optional, Pattern


def normalize_path(path: str) -> str:
    normalized = (path or "").replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def expand_braces(pattern: str) -> List[str]:
    """Expand the first top-level ``{a,b}`` group, recursively."""
    depth = 0
    start = -1
    commas: List[int] = []
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "{":
            if depth == 0:
                start = i
                commas = []
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                if not commas:
                    # "{x}" has no alternatives; keep it literal and keep scanning.
                    start = -1
                    i += 1
                    continue
                prefix = pattern[:start]
                suffix = pattern[i + 1 :]
                bounds = [start] + commas + [i]
                options = [pattern[bounds[n] + 1 : bounds[n + 1]] for n in range(len(bounds) - 1)]
                expanded: List[str] = []
                for option in options:
                    expanded.extend(expand_braces(prefix + option + suffix))
                return expanded
        elif ch == "," and depth == 1:
            commas.append(i)
        i += 1
    return [pattern]


def _translate_segment(segment: str) -> str:
    out: List[str] = []
    i = 0
    n = len(segment)
    while i < n:
        ch = segment[i]
        if ch == "*":
            while i < n and segment[i] == "*":
                i += 1
            out.append("[^/]*")
            continue
        if ch == "?":
            out.append("[^/]")
        elif ch == "[":
            j = i + 1
            negate = j < n and segment[j] in "!^"
            if negate:
                j += 1
            # A "]" right after the opening bracket is a literal member.
            end = segment.find("]", j + 1)
            if end == -1:
                out.append(re.escape(ch))
            else:
                body = segment[j:end]
                body = body.replace("\\", "\\\\").replace("[", "\\[").replace("]", "\\]")
                out.append(f"[{'^/' if negate else ''}{body}]")
                i = end
        elif ch == "\\" and i + 1 < n:
            i += 1
            out.append(re.escape(segment[i]))
        else:
            out.append(re.escape(ch))
        i += 1
    return "".join(out)


def _translate(pattern: str) -> str:
    segments = pattern.split("/")
    regex = ""
    need_sep = False
    for index, segment in enumerate(segments):
        is_last = index == len(segments) - 1
        if segment == "**":
            if is_last:
                regex += "(?:/.*)?" if need_sep else ".*"
                return regex
            if need_sep:
                regex += "/"
            regex += "(?:.*/)?"
            need_sep = False
            continue
        if need_sep:
            regex += "/"
        regex += _translate_segment(segment)
        need_sep = True
    return regex


@lru_cache(maxsize=1024)
def compile_glob(pattern: str) -> Pattern[str]:
    """Compile a glob to an anchored regex; raises ValueError for malformed patterns."""
    normalized = normalize_path(pattern)
    alternatives = [_translate(option) for option in expand_braces(normalized)]
    try:
        return re.compile(r"\A(?:" + "|".join(alternatives) + r")\Z", re.DOTALL)
    except re.error as exc:
        raise ValueError(f"invalid glob pattern \"{pattern}\": {exc}") from None


def check_patterns(patterns: Iterable[str]) -> None:
    for pattern in patterns:
        compile_glob(pattern)


def glob_match(path: str, pattern: str) -> bool:
    return compile_glob(pattern).match(normalize_path(path)) is not None


def first_match(path: str, patterns: Iterable[str]) -> Optional[str]:
    """Return the first pattern that matches ``path``."""
    for pattern in patterns:
        if glob_match(path, pattern):
            return pattern
    return None


def matches_any(path: str, patterns: Iterable[str]) -> bool:
    return first_match(path, patterns) is not None


def any_file_matches(paths: Iterable[str], patterns: Iterable[str]) -> bool:
    pattern_list = list(patterns)
    return any(matches_any(path, pattern_list) for path in paths)
