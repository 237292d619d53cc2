"""HMAC-SHA256 request signing for the OpenAPI gateway.

The scheme follows the API-gateway key-pair authentication described in
https://cloud.tencent.com/document/product/628/55088 and must stay bit-exact,
the gateway recomputes the same string on its side:

    <name>: <value>\\n ...          one line per signed header, names sorted
    <METHOD>\\n
    application/json\\n
    \\n
    <content-md5>\\n
    <path>[?<sorted urlencoded query>]

Everything here is a pure function over the request parts.
"""

import base64
import hashlib
import hmac
from collections.abc import Mapping, Sequence
from operator import itemgetter
from urllib.parse import urlencode

ACCEPT = "application/json"
ALGORITHM = "hmac-sha256"

# Only this exact spelling is left out of the signed headers.
EXCLUDED_HEADER = "Accept"

QueryItems = Sequence[tuple[str, str]]


def signed_header_names(headers: Mapping[str, str]) -> list[str]:
    """Lower-cased, de-duplicated and sorted names of the headers to sign."""
    return sorted({name.lower() for name in headers if name != EXCLUDED_HEADER})


def canonical_headers(headers: Mapping[str, str], names: Sequence[str]) -> str:
    """Render the `name: value` block for the given (already lower-cased) names.

    An exact lower-case key wins; otherwise the value is looked up
    case-insensitively so that a header stored as `X-Date` still contributes
    its value under `x-date`.
    """
    lowered = {name.lower(): value for name, value in headers.items()}
    return "".join(f"{name}: {headers.get(name, lowered.get(name, ''))}\n" for name in names)


def content_md5(body: bytes | None) -> str:
    """Hex MD5 of the body, or an empty string when there is no body."""
    if not body:
        return ""
    return hashlib.md5(body).hexdigest()


def encode_query(query: QueryItems) -> str:
    """URL-encode the query with keys in alphabetical order.

    The sort is stable, repeated keys keep the order they were given in.
    """
    return urlencode(sorted(query, key=itemgetter(0)))


def path_and_parameters(path: str, query: QueryItems | None = None) -> str:
    if not query:
        return path
    return f"{path}?{encode_query(query)}"


def string_to_sign(
    method: str,
    path: str,
    headers: Mapping[str, str],
    query: QueryItems | None = None,
    body: bytes | None = None,
) -> str:
    names = signed_header_names(headers)
    return (
        f"{canonical_headers(headers, names)}{method}\n{ACCEPT}\n\n"
        f"{content_md5(body)}\n{path_and_parameters(path, query)}"
    )


def sign(secret: str, message: str) -> str:
    """Base64 encoded HMAC-SHA256 of `message` keyed with `secret`."""
    digest = hmac.new(secret.encode(), message.encode(), hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def authorization(
    key_id: str,
    secret: str,
    method: str,
    path: str,
    headers: Mapping[str, str],
    query: QueryItems | None = None,
    body: bytes | None = None,
) -> str:
    """Build the full `Authorization` header value for a request."""
    names = signed_header_names(headers)
    signature = sign(secret, string_to_sign(method, path, headers, query, body))
    return f'hmac id="{key_id}", algorithm="{ALGORITHM}", headers="{" ".join(names)}", signature="{signature}"'
