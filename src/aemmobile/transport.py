"""HTTP transport for the publishing service.

A ``Session`` owns the credentials, the client session id and the
connection pool. Every request goes through ``Session.request``, which adds
the standard headers and turns error bodies into ``ServerError`` exceptions.
Idempotent requests are retried by the adapter mounted on the pool.
"""

import logging
import uuid
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import (
    Credentials,
    DEFAULT_NETWORK_RETRY_BACKOFF,
    DEFAULT_NETWORK_RETRY_COUNT,
    DEFAULT_NETWORK_TIMEOUT,
)
from .errors import ErrorKind, ServerError, TransportError, server_error_from

logger = logging.getLogger(__name__)

CLIENT_VERSION = "0.0.1"

PECS_URL = "https://pecs.publish.adobe.io"
INGESTION_URL = "https://ings.publish.adobe.io"
AUTHORIZATION_URL = "https://authorization.publish.adobe.io"
IMS_URL = "https://ims-na1.adobelogin.com"

# Status codes worth another try on an idempotent request
RETRY_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
RETRY_METHODS = frozenset({"GET"})


def retry_policy(retry_count: int, retry_backoff: float) -> Retry:
    """Retry strategy mounted on every session.

    Only GET requests are resent after a read error or a retryable status.
    Once retries run out the last response is handed back as is, so error
    bodies still go through ``Session._decode``.
    """
    return Retry(
        total=retry_count,
        backoff_factor=retry_backoff,
        status_forcelist=RETRY_STATUS_CODES,
        allowed_methods=RETRY_METHODS,
        raise_on_status=False,
    )


class Session:
    """Credentialed connection to the publishing service.

    Several sessions can live in one process; nothing here is global.
    The session is safe to share between threads as long as credentials
    are not modified while requests are in flight.
    """

    def __init__(
        self,
        credentials: Credentials,
        *,
        timeout: float = DEFAULT_NETWORK_TIMEOUT,
        retry_count: int = DEFAULT_NETWORK_RETRY_COUNT,
        retry_backoff: float = DEFAULT_NETWORK_RETRY_BACKOFF,
        http: requests.Session | None = None,
    ):
        self.credentials = credentials
        self.session_id = str(uuid.uuid4())
        self.timeout = timeout
        self.retry_count = retry_count
        self.retry_backoff = retry_backoff
        self.http = http if http is not None else requests.Session()

        adapter = HTTPAdapter(max_retries=retry_policy(retry_count, retry_backoff))
        self.http.mount("https://", adapter)
        self.http.mount("http://", adapter)

    @property
    def publication_id(self) -> str | None:
        return self.credentials.publication_id

    def standard_headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        """Headers sent with every request. Values in ``extra`` win."""
        headers = {
            "X-DPS-Client-Version": CLIENT_VERSION,
            "X-DPS-Client-Id": self.credentials.client_id,
            "X-DPS-Client-Request-Id": str(uuid.uuid4()),
            "X-DPS-Client-Session-Id": self.session_id,
            "X-DPS-Api-Key": self.credentials.client_id,
            "Accept": "application/json",
        }
        if self.credentials.access_token:
            headers["Authorization"] = f"bearer {self.credentials.access_token}"
        if extra:
            headers.update(extra)
        return headers

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        json: Any = None,
        data: bytes | str | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Perform one request and return the decoded body.

        JSON bodies are parsed; anything else is returned as bytes. Empty
        bodies decode to None.

        Raises:
            ServerError: The body carries an error code, or the status is
                an error with no usable body.
            TransportError: The request could not be completed.
        """
        method = method.upper()
        logger.debug("%s %s", method, url)
        try:
            resp = self.http.request(
                method,
                url,
                headers=self.standard_headers(headers),
                json=json,
                data=data,
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise TransportError(
                f"{method} {url} failed: {e}", method=method, url=url
            ) from e

        return self._decode(resp)

    def _decode(self, resp: requests.Response) -> Any:
        if not resp.content:
            body = None
        else:
            try:
                body = resp.json()
            except ValueError:
                body = resp.content

        error = server_error_from(body)
        if error is not None:
            raise error

        if resp.status_code >= 400:
            text = body.decode(errors="replace") if isinstance(body, bytes) else str(body or "")
            raise ServerError(
                str(resp.status_code),
                text or resp.reason or "HTTP error",
                ErrorKind.HTTP_ERROR,
                body,
            )

        return body

    def get(self, url: str, **kwargs: Any) -> Any:
        return self.request("GET", url, **kwargs)

    def put(self, url: str, **kwargs: Any) -> Any:
        return self.request("PUT", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> Any:
        return self.request("POST", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> Any:
        return self.request("DELETE", url, **kwargs)
