"""Immutable credential snapshots for the BlueRover API."""

from dataclasses import dataclass
from typing import Any, Mapping, Union

from .constants import AUTH_SCHEME
from .exceptions import InvalidArgumentError

INVALID_CREDENTIALS_MESSAGE = (
    "BlueRover API: key, token, and base URL must contain valid values."
)


def _is_null_or_empty(value: Any) -> bool:
    # Anything that is not text or bytes cannot be a valid credential
    if not isinstance(value, (str, bytes)):
        return True
    return len(value) == 0


@dataclass(frozen=True)
class Credentials:
    """Key, token and base URL used to sign and address requests."""

    key: Union[str, bytes]
    token: str
    base_url: str

    @classmethod
    def create(cls, key, token, base_url) -> "Credentials":
        """
        Validate and build a credential snapshot.

        Raises:
            InvalidArgumentError: If any field is None or empty
        """
        if any(_is_null_or_empty(v) for v in (key, token, base_url)):
            raise InvalidArgumentError(INVALID_CREDENTIALS_MESSAGE)
        return cls(key=key, token=token, base_url=base_url)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "Credentials":
        """Build from ``{"key", "token", "baseUrl"}`` (``base_url`` also accepted)."""
        base_url = mapping.get('baseUrl', mapping.get('base_url'))
        return cls.create(mapping.get('key'), mapping.get('token'), base_url)

    def authorization_header(self, signature: str) -> str:
        return f"{AUTH_SCHEME} {self.token}:{signature}"

    def __repr__(self) -> str:
        return f"Credentials(token={self.token!r}, base_url={self.base_url!r})"
