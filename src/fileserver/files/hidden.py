"""Hide-list matching for paths that must look nonexistent."""
import contextlib
import functools
import os
import re
from collections.abc import Iterable

from fileserver.files.replacer import Replacer

SEPARATOR = os.sep


def _class_char(pattern: str, i: int, escapes: bool) -> tuple[str, int] | None:
    if i >= len(pattern) or pattern[i] in "-]":
        return None
    if pattern[i] == "\\" and escapes:
        i += 1
        if i >= len(pattern):
            return None
    char = pattern[i]
    i += 1
    # a class must be closed by a later "]"
    if i >= len(pattern):
        return None
    return char, i


def _translate_class(pattern: str, i: int, escapes: bool) -> tuple[str, int] | None:
    negated = i < len(pattern) and pattern[i] == "^"
    if negated:
        i += 1

    ranges: list[str] = []
    count = 0
    while True:
        if i < len(pattern) and pattern[i] == "]" and count > 0:
            i += 1
            break
        parsed = _class_char(pattern, i, escapes)
        if parsed is None:
            return None
        lo, i = parsed
        hi = lo
        if pattern[i] == "-":
            parsed = _class_char(pattern, i + 1, escapes)
            if parsed is None:
                return None
            hi, i = parsed
        # an inverted range is legal but matches nothing
        if lo <= hi:
            ranges.append(f"{re.escape(lo)}-{re.escape(hi)}")
        count += 1

    if not ranges:
        return (".", i) if negated else ("(?!)", i)
    return f"[{'^' if negated else ''}{''.join(ranges)}]", i


@functools.lru_cache(maxsize=256)
def _compile_glob(pattern: str, sep: str) -> re.Pattern[str] | None:
    """Translate a glob into a regular expression.

    Returns None for a malformed pattern.
    """
    escapes = sep != "\\"
    not_sep = f"[^{re.escape(sep)}]"
    out: list[str] = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        i += 1
        if char == "*":
            out.append(f"{not_sep}*")
        elif char == "?":
            out.append(not_sep)
        elif char == "[":
            translated = _translate_class(pattern, i, escapes)
            if translated is None:
                return None
            chunk, i = translated
            out.append(chunk)
        elif char == "\\" and escapes:
            if i >= len(pattern):
                return None
            out.append(re.escape(pattern[i]))
            i += 1
        else:
            out.append(re.escape(char))
    return re.compile("".join(out), re.DOTALL)


def glob_match(pattern: str, name: str, sep: str = SEPARATOR) -> bool:
    """Match a path against a shell glob.

    ``*`` and ``?`` never match the separator: ``/site/*.txt`` matches
    ``/site/a.txt`` but not ``/site/a/b.txt``. Character classes are
    written ``[a-z]`` and negated as ``[^a-z]``; ``\\`` escapes the next
    character except where it is the separator. Matching is
    case-sensitive, and a malformed pattern matches nothing.

    Args:
        pattern: Glob pattern.
        name: Path or single path component.
        sep: Separator delimiting segments.

    Returns:
        True if the whole of ``name`` matches ``pattern``.
    """
    compiled = _compile_glob(pattern, sep)
    return compiled is not None and compiled.fullmatch(name) is not None


def file_hidden(filename: str, hide: list[str]) -> bool:
    """Check whether a filesystem path is hidden by the hide list.

    Patterns without a separator hide any path component they match, so
    hiding ``bar`` hides ``/bar`` and ``/foo/bar/baz`` but not
    ``/barstool``. Patterns with a separator hide the path itself and
    anything below it, so ``/foo`` hides ``/foo/bar`` but not ``/foobar``.
    Every pattern is also tried as a glob against the whole path.

    Args:
        filename: Filesystem path (not a request URI path).
        hide: Absolute path patterns or bare name patterns.

    Returns:
        True if any pattern matches.
    """
    if not hide:
        return False

    with contextlib.suppress(OSError, ValueError):
        filename = os.path.abspath(filename)

    components: list[str] | None = None

    for h in hide:
        if SEPARATOR not in h:
            if components is None:
                components = filename.split(SEPARATOR)
            if any(glob_match(h, c) for c in components):
                return True
        elif filename.startswith(h):
            without_prefix = filename[len(h):]
            if without_prefix == "" or without_prefix.startswith(SEPARATOR):
                return True

        if glob_match(h, filename):
            return True

    return False


def transform_hide_paths(hide: Iterable[str], replacer: Replacer) -> list[str]:
    """Resolve placeholders in hide patterns for the current request.

    Args:
        hide: Configured hide patterns.
        replacer: Request-scoped placeholder replacer.

    Returns:
        Patterns with placeholders replaced; patterns containing a
        separator are made absolute. Patterns that resolve to nothing
        are dropped, since an empty glob matches the empty leading
        component of every absolute path.
    """
    transformed: list[str] = []
    for pattern in hide:
        h = replacer.replace_all(pattern, "")
        if h == "":
            continue
        if SEPARATOR in h:
            with contextlib.suppress(OSError, ValueError):
                h = os.path.abspath(h)
        transformed.append(h)
    return transformed
