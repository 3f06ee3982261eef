"""HTTP access to the Wikidata API, SPARQL endpoint, textifier and vector search."""

from typing import Any, Dict, Optional

import requests

from .config import Config, validate_config
from .logger import get_logger

MAX_ERROR_BODY_BYTES = 1 << 16


class WikidataError(Exception):
    """Base class for failures talking to a remote service."""


class RequestError(WikidataError):
    """Network failure or timeout; the original exception is chained."""


class HTTPStatusError(WikidataError):
    """Remote service answered with HTTP status >= 400."""

    def __init__(self, status_code: int, body: str):
        trimmed = body.strip()
        if trimmed == "":
            message = f"remote service returned HTTP {status_code}"
        else:
            message = f"remote service returned HTTP {status_code}: {trimmed}"
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class DecodeError(WikidataError):
    """Response body was not valid JSON."""


class WikidataClient:
    """
    Thin JSON-over-GET client shared by every capability.

    One attempt per request, bounded by the configured timeout. Failures
    are logged at DEBUG only; callers decide whether a failure is fatal.
    """

    def __init__(self, config: Config, session: Optional[requests.Session] = None):
        validate_config(config)
        self.config = config
        self.session = session if session is not None else requests.Session()

    @property
    def timeout(self) -> float:
        return self.config.timeout

    def get_json(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        service: str = "wikidata-api",
    ) -> Any:
        """Fetch endpoint with query params and decode the JSON body.

        Args:
            endpoint: Absolute URL
            params: Query parameters
            headers: Extra headers; blank values are skipped
            service: Service name for logging and metrics

        Returns:
            Decoded JSON value

        Raises:
            RequestError: On connection failure or timeout
            HTTPStatusError: On HTTP status >= 400
            DecodeError: On malformed JSON
        """
        logger = get_logger()
        request_headers = {
            "Accept": "application/json",
            "User-Agent": self.config.user_agent,
        }
        for key, value in (headers or {}).items():
            if value.strip() != "":
                request_headers[key] = value

        logger.record_request(service)
        logger.debug("GET request", service=service, url=endpoint)
        try:
            resp = self.session.get(
                endpoint,
                params=params,
                headers=request_headers,
                timeout=self.config.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.record_request_failure(service, "Timeout")
            logger.debug(f"{service} request timed out", url=endpoint)
            raise RequestError(f"request failed: {e}") from e
        except requests.exceptions.RequestException as e:
            logger.record_request_failure(service, "RequestException")
            logger.debug(f"{service} request error", url=endpoint, error=str(e))
            raise RequestError(f"request failed: {e}") from e

        if resp.status_code >= 400:
            body = resp.content[:MAX_ERROR_BODY_BYTES].decode("utf-8", errors="replace")
            logger.record_request_failure(service, f"HTTPError_{resp.status_code}")
            logger.debug(f"{service} request failed", url=endpoint, status=resp.status_code)
            raise HTTPStatusError(resp.status_code, body)

        try:
            data = resp.json()
        except ValueError as e:
            logger.record_request_failure(service, "DecodeError")
            logger.debug(f"{service} returned invalid json", url=endpoint)
            raise DecodeError(f"failed to decode response json: {e}") from e

        logger.record_request_success(service)
        return data
