"""Simple HTTP helpers for fetching JSON from APIs."""

from typing import Any

import requests

from utils.config import Config
from utils.logging import get_logger

logger = get_logger("utils.http")


def fetch_json(
    url: str,
    method: str = "get",
    timeout: int | None = None,
    **kwargs: Any,
) -> dict | None:
    """Fetch JSON from a URL with error handling.

    Returns the parsed JSON dict on success, or None on failure.
    """
    if timeout is None:
        timeout = Config.get_request_timeout()
    try:
        resp = requests.request(method, url, timeout=timeout, **kwargs)
        if resp.status_code != 200:
            logger.error("HTTP %s for %s: %s", resp.status_code, url, resp.text[:200])
            return None
        payload = resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.error("Request failed for %s: %s", url, e)
        return None
    if not isinstance(payload, dict):
        logger.error("Unexpected JSON body from %s: %s", url, type(payload).__name__)
        return None
    return payload


def graphql_query(url: str, query: str, variables: dict | None = None, timeout: int | None = None) -> dict | None:
    """POST a GraphQL query and return its ``data`` member.

    GraphQL reports failures inside a 200 response, so a non-empty ``errors``
    list is treated like a transport failure and yields None.
    """
    body = fetch_json(url, method="post", timeout=timeout, json={"query": query, "variables": variables or {}})
    if body is None:
        return None
    errors = body.get("errors")
    if errors:
        logger.error("GraphQL errors from %s: %s", url, errors)
        return None
    data = body.get("data")
    if not isinstance(data, dict):
        logger.error("GraphQL response from %s has no data", url)
        return None
    return data
