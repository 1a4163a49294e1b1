"""
URL path cleaning for analytics.

Strips query parameters that may carry credentials or session state and,
optionally, collapses numeric/UUID path segments into placeholders so that
``/user/123`` and ``/user/456`` aggregate as ``/user/:id``.
"""
import re
from typing import Iterable, Sequence
from urllib.parse import unquote_plus

# Matched as case-insensitive substrings of the parameter name
SENSITIVE_PARAMS = (
    "token",
    "access_token",
    "refresh_token",
    "api_key",
    "apikey",
    "secret",
    "password",
    "pwd",
    "pass",
    "session",
    "sessionid",
    "sid",
    "auth",
    "key",
    "code",
    "state",
    "nonce",
)

_NUMERIC_SEGMENT = re.compile(r"^\d+$")
_UUID_SEGMENT = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def clean_path(
    path: str,
    remove_sensitive_params: bool = True,
    generalize_ids: bool = False,
    additional_sensitive_params: Sequence[str] = (),
) -> str:
    """
    Clean a request path (optionally with query string) for storage.

    Never raises: if anything goes wrong the input is returned as-is.

    >>> clean_path("/search?q=test&token=secret&page=1")
    '/search?q=test&page=1'
    >>> clean_path("/user/123", generalize_ids=True)
    '/user/:id'
    """
    try:
        pathname, has_query, query = path.partition("?")

        cleaned = generalize_path_ids(pathname) if generalize_ids else pathname

        if not has_query:
            return cleaned

        if not remove_sensitive_params or not query:
            return f"{cleaned}?{query}"

        sensitive = [p.lower() for p in SENSITIVE_PARAMS]
        sensitive.extend(p.lower() for p in additional_sensitive_params)
        cleaned_query = clean_query_string(query, sensitive)
        if cleaned_query:
            return f"{cleaned}?{cleaned_query}"
        return cleaned
    except Exception:
        return path


def generalize_path_ids(pathname: str) -> str:
    """Replace all-digit segments with ``:id`` and UUID segments with ``:uuid``"""
    segments = []
    for segment in pathname.split("/"):
        if _NUMERIC_SEGMENT.match(segment):
            segments.append(":id")
        elif _UUID_SEGMENT.match(segment):
            segments.append(":uuid")
        else:
            segments.append(segment)
    return "/".join(segments)


def is_sensitive(name: str, sensitive: Iterable[str]) -> bool:
    name = name.lower()
    return any(s in name for s in sensitive)


def clean_query_string(query: str, sensitive: Iterable[str]) -> str:
    """
    Drop sensitive ``key=value`` pairs from a raw query string.

    Surviving pairs keep their original order and encoding. Returns an
    empty string when nothing survives.
    """
    sensitive = list(sensitive)
    kept = []
    for pair in query.split("&"):
        if not pair:
            continue
        name = unquote_plus(pair.split("=", 1)[0])
        if not is_sensitive(name, sensitive):
            kept.append(pair)
    return "&".join(kept)
