"""Client for reading statistics from the AdGuard Home control API."""

import json
import time
from typing import Optional

import requests
import urllib3

from .models import ExporterConfig, PayloadError, StatsResponse
from .utils import basic_auth_header

# TLS verification is always skipped for the upstream
urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

STATS_PATH = '/control/stats'
READ_CHUNK_SIZE = 1024


class UpstreamError(Exception):
    """Base class for failures talking to AdGuard Home."""


class UpstreamTransportError(UpstreamError):
    """The request could not be sent or the response could not be read."""


class UpstreamTimeoutError(UpstreamTransportError):
    """The upstream did not answer within the configured timeout."""


class UpstreamStatusError(UpstreamError):
    """The upstream answered with a non-success HTTP status."""

    def __init__(self, status_code: int, reason: str = ''):
        super().__init__(f"unexpected status {status_code} {reason}".rstrip())
        self.status_code = status_code


class UpstreamParseError(UpstreamError):
    """The response body is not the expected JSON document."""


class AdGuardClient:
    """Fetch /control/stats from one AdGuard Home instance."""

    def __init__(self, endpoint: str, username: str = '', password: str = '', timeout: Optional[float] = 10.0):
        self.endpoint = endpoint
        self.url = f"http://{endpoint}{STATS_PATH}"
        self.headers = {
            'Authorization': basic_auth_header(username, password),
            'Accept': 'application/json',
        }
        self.timeout = timeout  # None waits forever

    @classmethod
    def from_config(cls, config: ExporterConfig) -> 'AdGuardClient':
        return cls(config.endpoint, config.username, config.password, config.timeout)

    def fetch(self) -> StatsResponse:
        """Issue one GET and decode the statistics.

        Raises:
            UpstreamTimeoutError: no answer, or no complete body, within the timeout
            UpstreamTransportError: connection or read failure
            UpstreamStatusError: non-2xx answer
            UpstreamParseError: body is not valid statistics JSON
        """
        deadline = None if self.timeout is None else time.monotonic() + self.timeout
        # A session per call keeps concurrent scrapes independent
        with requests.Session() as session:
            try:
                with session.get(
                    self.url,
                    headers=self.headers,
                    timeout=self.timeout,
                    verify=False,
                    stream=True,
                ) as response:
                    # timeout bounds each read; the deadline bounds the whole body
                    chunks = []
                    for chunk in response.iter_content(chunk_size=READ_CHUNK_SIZE):
                        chunks.append(chunk)
                        if deadline is not None and time.monotonic() > deadline:
                            raise UpstreamTimeoutError(
                                f"timed out after {self.timeout}s reading {self.url}"
                            )
                    body = b''.join(chunks)
            except requests.exceptions.Timeout as e:
                raise UpstreamTimeoutError(f"timed out after {self.timeout}s requesting {self.url}: {e}") from e
            except requests.exceptions.RequestException as e:
                raise UpstreamTransportError(f"could not get {self.url}: {e}") from e

        if not 200 <= response.status_code < 300:
            raise UpstreamStatusError(response.status_code, response.reason or '')

        return self._decode(body)

    def _decode(self, body: bytes) -> StatsResponse:
        try:
            payload = json.loads(body)
        except (ValueError, RecursionError) as e:
            raise UpstreamParseError(f"invalid JSON from {self.url}: {e}") from e

        try:
            return StatsResponse.from_payload(payload)
        except PayloadError as e:
            raise UpstreamParseError(f"unexpected statistics from {self.url}: {e}") from e


def fetch_stats(config: ExporterConfig) -> StatsResponse:
    """Fetch statistics once using the given configuration."""
    return AdGuardClient.from_config(config).fetch()
