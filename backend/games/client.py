"""
Thin client for the RAWG video games database.

The API key never leaves the server: callers pass the client's query
parameters through and `key` is appended here.
"""

import logging

import requests
from django.conf import settings

from gamehub.exceptions import UpstreamServiceError

logger = logging.getLogger(__name__)


def _error_message(response, exc):
    try:
        body = response.json()
    except ValueError:
        return str(exc)
    if isinstance(body, dict) and body.get("detail"):
        return body["detail"]
    return str(exc)


def fetch(endpoint, params=None):
    """GET `endpoint` from RAWG and return the decoded JSON body."""
    url = f"{settings.RAWG_BASE_URL}/{endpoint.strip('/')}"
    query = dict(params or {})
    query["key"] = settings.RAWG_API_KEY

    logger.info("Proxying RAWG request: %s", url)
    try:
        response = requests.get(url, params=query, timeout=settings.RAWG_TIMEOUT)
        response.raise_for_status()
    except requests.exceptions.HTTPError as exc:
        logger.warning("RAWG API error %s for %s", exc.response.status_code, url)
        raise UpstreamServiceError(
            "RAWG API error",
            _error_message(exc.response, exc),
            status_code=exc.response.status_code,
        )
    except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as exc:
        logger.error("RAWG API unreachable: %s", exc)
        raise UpstreamServiceError("Network error", "Unable to reach RAWG API")
    except requests.exceptions.RequestException as exc:
        logger.error("RAWG request failed: %s", exc)
        raise UpstreamServiceError("Internal server error", str(exc), status_code=500)

    return response.json()
