# carelog/common/spectacular_hooks.py
from __future__ import annotations

PRIMARY_API_PREFIX = "/api/v1/"
ALIAS_API_PREFIX = "/api/"


def preprocess_exclude_legacy_api(endpoints):
    """
    The API is mounted under /api/v1/ and again under the /api/ alias.
    Document the versioned copy only; schema and docs routes pass through.
    """
    return [
        endpoint
        for endpoint in endpoints
        if endpoint[0].startswith(PRIMARY_API_PREFIX) or not endpoint[0].startswith(ALIAS_API_PREFIX)
    ]
