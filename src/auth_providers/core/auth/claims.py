"""Claim decoding and typed claim access.

Provider payloads (ID token claims, userinfo JSON) have no fixed schema.
Claims wraps one of them and hands out typed values, turning an absent claim
into MissingFieldError and a claim of the wrong type into ClaimsDecodeError.
"""

from typing import Any, Dict, Iterator, List, Mapping, Optional

from jose import JWTError, jwt

from .errors import ClaimsDecodeError, MissingFieldError


_TRUE_STRINGS = {"true", "1"}
_FALSE_STRINGS = {"false", "0"}


def decode_unverified_claims(raw_token: str) -> "Claims":
    """Decode a JWT claim set WITHOUT verifying its signature.

    Only call this for tokens received directly from a provider's token
    endpoint over TLS, in the same response as the access token. That
    channel is the trust anchor; the signature is not checked. Callers must
    still validate iss and aud against their own configuration.

    Args:
        raw_token: Compact-serialized JWT

    Returns:
        Claims for the token payload

    Raises:
        ClaimsDecodeError: If the token is not a well-formed JWT
    """
    try:
        payload = jwt.get_unverified_claims(raw_token)
    except JWTError as e:
        raise ClaimsDecodeError(f"failed to parse id_token: {e}") from e
    return Claims(payload)


class Claims(Mapping[str, Any]):
    """Read-only typed view over a decoded claim set."""

    def __init__(self, data: Mapping[str, Any]):
        self._data: Dict[str, Any] = dict(data)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._data)

    def string(self, name: str, required: bool = False, default: str = "") -> str:
        """Return a string claim.

        Absent and null claims count as missing; an empty string counts as
        missing only when required.

        Raises:
            MissingFieldError: If required and absent or empty
            ClaimsDecodeError: If present with a non-string value
        """
        value = self._data.get(name)
        if value is None:
            if required:
                raise MissingFieldError(name)
            return default
        if not isinstance(value, str):
            raise ClaimsDecodeError(
                f"claim {name!r} must be a string, got {type(value).__name__}"
            )
        if required and not value:
            raise MissingFieldError(name)
        return value

    def identifier(self, name: str) -> str:
        """Return a required identifier claim as a string.

        Providers disagree on whether user ids are strings (Zoho, Google,
        Discord) or integers (GitHub, GitLab); both are accepted.
        """
        value = self._data.get(name)
        if value is None or value == "":
            raise MissingFieldError(name)
        # bool is an int subclass
        if isinstance(value, bool):
            raise ClaimsDecodeError(f"claim {name!r} must be a string or integer, got bool")
        if isinstance(value, int):
            return str(value)
        if isinstance(value, str):
            return value
        raise ClaimsDecodeError(
            f"claim {name!r} must be a string or integer, got {type(value).__name__}"
        )

    def boolean(self, name: str) -> Optional[bool]:
        """Return a boolean claim, or None when absent.

        Some providers serialize booleans as "true"/"false" strings.
        """
        value = self._data.get(name)
        if value is None:
            return None
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        raise ClaimsDecodeError(f"claim {name!r} must be a boolean, got {value!r}")

    def audience(self) -> List[str]:
        """Return the aud claim as a list (RFC 7519 allows a string or an array)."""
        value = self._data.get("aud")
        if value is None:
            raise MissingFieldError("aud")
        if isinstance(value, str):
            return [value]
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            return list(value)
        raise ClaimsDecodeError("claim 'aud' must be a string or a list of strings")
