"""HTTP helper utilities for tests."""

from __future__ import annotations

from http.cookies import SimpleCookie


def json_headers(auth_token: str | None = None) -> dict[str, str]:
    """Return standard JSON headers.

    Parameters
    ----------
    auth_token:
        Optional bearer token to include.

    Returns
    -------
    dict[str, str]
        HTTP headers dictionary.
    """

    headers = {"Content-Type": "application/json", "Accept": "application/json"}
    if auth_token:
        headers["Authorization"] = f"Bearer {auth_token}"
    return headers


def set_cookie(response, name: str) -> SimpleCookie | None:
    """Return the parsed ``Set-Cookie`` header for ``name``, if the response sets it."""

    for header in response.headers.getlist("Set-Cookie"):
        jar = SimpleCookie()
        jar.load(header)
        if name in jar:
            return jar
    return None


def cookie_value(response, name: str) -> str | None:
    """Value of cookie ``name`` set by ``response`` (empty string when cleared)."""

    jar = set_cookie(response, name)
    return jar[name].value if jar is not None else None
