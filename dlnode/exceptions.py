"""
dlnode Exceptions

Custom exception classes for node settings loading and validation.
"""

from typing import Any, Iterable, List, Sequence


class DLNodeException(Exception):
    """Base exception for dlnode."""
    pass


class ConfigurationError(DLNodeException):
    """Configuration error."""
    pass


# ---------------------------------------------------------------------------
# Field-level configuration errors
# ---------------------------------------------------------------------------

class FieldError(ConfigurationError):
    """
    A defect tied to one configuration field.

    Attributes:
        path: Dotted field path, e.g. ``network.connect_timeout``.
        value: The offending raw value (``None`` when absent).
        source: Layer the value came from: ``default``, ``file`` or ``env``.
    """

    reason = "invalid value"

    def __init__(self, path: str, value: Any = None, source: str = "", detail: str = ""):
        self.path = path
        self.value = value
        self.source = source
        self.detail = detail
        super().__init__(self._render())

    def _render(self) -> str:
        msg = f"{self.path}: {self.reason}"
        if self.detail:
            msg += f" ({self.detail})"
        if self.value is not None:
            msg += f", got {self.value!r}"
        if self.source:
            msg += f" [from {self.source}]"
        return msg


class MissingField(FieldError):
    """Required field absent after all layers were merged."""
    reason = "required field is missing"


class TypeMismatch(FieldError):
    """Value could not be coerced to the field type."""
    reason = "wrong type"


class InvalidAddress(FieldError):
    """Value is not a valid ip:port pair or bare IP address."""
    reason = "invalid address"


class InvalidIdentity(FieldError):
    """Value is not a valid base58check public key."""
    reason = "invalid public key"


class NegativeDuration(FieldError):
    """Duration field set to a negative value."""
    reason = "duration must not be negative"


class NegativeRate(FieldError):
    """Byte rate field set to a negative value."""
    reason = "byte rate must not be negative"


class OutOfRangeCount(FieldError):
    """Count field outside its permitted range."""
    reason = "count out of range"


class AmbiguousTrustEntry(FieldError):
    """Same bootstrap address listed with different public keys."""
    reason = "bootstrap address listed with conflicting public keys"


# ---------------------------------------------------------------------------
# Table coverage errors
# ---------------------------------------------------------------------------

class MissingCategory(ConfigurationError):
    """Peer category table lacks one or more categories."""

    def __init__(self, path: str, categories: Sequence[str], source: str = ""):
        self.path = path
        self.categories = list(categories)
        self.value = None
        self.source = source
        super().__init__(
            f"{path}: missing peer categories {', '.join(self.categories)}"
            + (f" [from {source}]" if source else "")
        )


class UnknownCategory(ConfigurationError):
    """Peer category table contains keys that are not categories."""

    def __init__(self, path: str, keys: Sequence[str], source: str = ""):
        self.path = path
        self.keys = list(keys)
        self.value = None
        self.source = source
        super().__init__(
            f"{path}: unknown peer categories {', '.join(self.keys)}"
            + (f" [from {source}]" if source else "")
        )


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------

class SettingsError(ConfigurationError):
    """Every defect found while loading settings, reported together."""

    def __init__(self, errors: Iterable[ConfigurationError]):
        self.errors: List[ConfigurationError] = flatten_errors(errors)
        lines = "\n".join(f"  - {e}" for e in self.errors)
        super().__init__(f"{len(self.errors)} configuration error(s):\n{lines}")


def flatten_errors(errors: Iterable[ConfigurationError]) -> List[ConfigurationError]:
    """Unpack nested SettingsError instances into a flat list."""
    flat: List[ConfigurationError] = []
    for err in errors:
        if isinstance(err, SettingsError):
            flat.extend(err.errors)
        else:
            flat.append(err)
    return flat


def raise_for_errors(errors: Sequence[ConfigurationError]) -> None:
    """Raise the single error directly, or a SettingsError for several."""
    errors = flatten_errors(errors)
    if not errors:
        return
    if len(errors) == 1:
        raise errors[0]
    raise SettingsError(errors)
