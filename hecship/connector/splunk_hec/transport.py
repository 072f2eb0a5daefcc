"""HTTP transport for the Splunk HTTP Event Collector.

.. security-best-practice::
   :title: Splunk HEC Output - SSL

   With :code:`splunk_hec_verify_ssl: false` neither the certificate chain nor the hostname
   of the endpoint is verified. Only use this for development setups with self-signed
   certificates.
"""

import logging
import warnings
from functools import cached_property
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.exceptions import InsecureRequestWarning
from urllib3.util.retry import Retry

from hecship.abc.exceptions import HecshipException
from hecship.util.defaults import HTTP_TIMEOUT

logger = logging.getLogger("HecTransport")


class HttpFailure(HecshipException):
    """Raise if a HEC request did not succeed.

    Either :code:`status` holds the unexpected http status or :code:`cause` holds the
    transport error (timeout, connection reset, TLS failure).
    """

    def __init__(
        self, message: str, status: Optional[int] = None, cause: Optional[Exception] = None
    ) -> None:
        super().__init__(message)
        self.status = status
        self.cause = cause


class HecTransport:
    """Posts request bodies to a HEC endpoint with token authentication.

    Retries are disabled on the connection pool because the sender decides
    what happens with a failed batch.
    """

    content_type = "application/json; charset=utf-8"

    def __init__(self, url: str, token: str, verify_ssl: bool = True, timeout: float = HTTP_TIMEOUT):
        self.url = url
        self.verify_ssl = verify_ssl
        self.timeout = timeout
        self._token = token

    @cached_property
    def _headers(self) -> dict:
        return {
            "Authorization": f"Splunk {self._token}",
            "Content-Type": self.content_type,
        }

    @cached_property
    def session(self) -> requests.Session:
        """The http session, created on first use"""
        session = requests.Session()
        adapter = HTTPAdapter(max_retries=Retry(total=0, connect=0, read=False, redirect=0))
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.verify = self.verify_ssl
        return session

    def post(self, body: bytes) -> None:
        """Send one POST request with the given body.

        Raises
        ------
        HttpFailure
            if the response status is not 200 or the request failed on transport level
        """
        try:
            with warnings.catch_warnings():
                if not self.verify_ssl:
                    warnings.simplefilter("ignore", InsecureRequestWarning)
                with self.session.post(
                    self.url,
                    data=body,
                    headers=self._headers,
                    timeout=(self.timeout, self.timeout),
                    allow_redirects=False,
                ) as response:
                    logger.debug("Servers response code is: %i", response.status_code)
                    if response.status_code != 200:
                        raise HttpFailure(
                            f"Unexpected HTTP response status {response.status_code}",
                            status=response.status_code,
                        )
        except requests.RequestException as error:
            raise HttpFailure(
                f"Error while posting to HEC endpoint: {error}", cause=error
            ) from error

    def close(self) -> None:
        """Close the http session if it was created"""
        session = self.__dict__.pop("session", None)
        if session is not None:
            session.close()
