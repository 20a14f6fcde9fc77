"""Request-scoped placeholder substitution for configured values."""
import re
from collections.abc import Callable

PLACEHOLDER_PATTERN = re.compile(r"\\\{|\\\}|\{([^{}\s]+)\}")

Provider = Callable[[str], str | None]


class Replacer:
    """Replaces ``{name}`` placeholders with per-request values.

    Values come from a static mapping first, then from providers tried in
    the order they were added. A provider returns ``None`` for keys it
    does not know. ``\\{`` and ``\\}`` produce literal braces.
    """

    def __init__(self, values: dict[str, str] | None = None) -> None:
        """Initialize replacer.

        Args:
            values: Static placeholder values.
        """
        self._values: dict[str, str] = dict(values or {})
        self._providers: list[Provider] = []

    def set(self, key: str, value: str) -> None:
        """Set a static placeholder value.

        Args:
            key: Placeholder name without braces.
            value: Replacement text.
        """
        self._values[key] = value

    def map(self, provider: Provider) -> None:
        """Add a lazy value provider.

        Args:
            provider: Callable returning the value for a key, or None.
        """
        self._providers.append(provider)

    def get(self, key: str) -> str | None:
        """Look up a placeholder value.

        Args:
            key: Placeholder name without braces.

        Returns:
            The value, or None if no source knows the key.
        """
        if key in self._values:
            return self._values[key]
        for provider in self._providers:
            value = provider(key)
            if value is not None:
                return value
        return None

    def replace_all(self, text: str, empty: str) -> str:
        """Replace every placeholder in text.

        Args:
            text: Input possibly containing placeholders.
            empty: Substitute for unknown placeholders.

        Returns:
            Text with placeholders resolved.
        """
        if "{" not in text and "}" not in text:
            return text

        def _sub(match: re.Match[str]) -> str:
            token = match.group(0)
            if token == "\\{":
                return "{"
            if token == "\\}":
                return "}"
            value = self.get(match.group(1))
            return empty if value is None else value

        return PLACEHOLDER_PATTERN.sub(_sub, text)
