"""
Request signing for the BlueRover API.

The server expects an HMAC-SHA1 signature over a canonical base string
built from the HTTP method, a normalized URL and the sorted query
parameters:

    escape(METHOD) & escape(normalized_url) & escape(k1=v1&k2=v2...)

The scheme resembles OAuth 1.0 signing but is not compatible with it:
parameter values are not escaped before being joined, the port is dropped
from the normalized URL and no nonce or timestamp is involved.
"""

import base64
import hashlib
import hmac
from typing import Mapping, Optional, Union
from urllib.parse import quote, urlsplit

from .constants import URI_COMPONENT_SAFE


def escape(value: str) -> str:
    """Percent-encode a string using URI-component rules."""
    return quote(value, safe=URI_COMPONENT_SAFE)


def normalize_url(url: str) -> str:
    """
    Normalize a URL for signing.

    Scheme and host are lower-cased, the path (including any query string)
    keeps its case. The port and userinfo are not part of the result.

    Args:
        url: Absolute URL

    Returns:
        ``scheme://host/path``
    """
    parts = urlsplit(url)
    path = parts.path or '/'
    if parts.query:
        path = f"{path}?{parts.query}"
    return f"{parts.scheme.lower()}://{(parts.hostname or '').lower()}{path}"


def param_string(params: Optional[Mapping[str, str]]) -> str:
    """Join parameters sorted by key as ``k=v`` pairs separated by ``&``."""
    if not params:
        return ''
    return '&'.join(f"{k}={params[k]}" for k in sorted(params))


def base_string(method: str, url: str, params: Optional[Mapping[str, str]] = None) -> str:
    """Build the canonical string that gets signed."""
    elements = [method.upper(), normalize_url(url), param_string(params)]
    return '&'.join(escape(element) for element in elements)


def sign(
    key: Union[str, bytes],
    method: str,
    url: str,
    params: Optional[Mapping[str, str]] = None
) -> str:
    """
    Generate the request signature.

    Args:
        key: HMAC secret key
        method: HTTP method
        url: Absolute request URL, without the query string
        params: Query parameters

    Returns:
        Base64-encoded HMAC-SHA1 digest
    """
    if isinstance(key, str):
        key = key.encode('utf-8')

    mac = hmac.new(
        key,
        base_string(method, url, params).encode('utf-8'),
        hashlib.sha1
    )
    return base64.b64encode(mac.digest()).decode('ascii')
