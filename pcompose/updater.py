"""Look up the name of the latest published release."""

from __future__ import annotations

import json
import urllib.error
import urllib.request

_TIMEOUT_SECONDS = 10


def get_latest_release_name(url: str) -> str:
    """Fetch the release JSON at url and return its "name" field."""
    try:
        with urllib.request.urlopen(url, timeout=_TIMEOUT_SECONDS) as response:
            body = response.read()
    except urllib.error.HTTPError as err:
        # The body is decoded whatever the status code.
        with err:
            body = err.read()
    release = json.loads(body)
    if not isinstance(release, dict):
        raise ValueError("release description is not a JSON object")
    name = release.get("name")
    if name is None:
        return ""
    if not isinstance(name, str):
        raise ValueError("release name is not a string")
    return name