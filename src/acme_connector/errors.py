"""ACME connector errors."""
import typing
from typing import Any
from typing import Mapping
from typing import Optional

# We import acme_connector.messages only during type check to avoid circular
# dependencies.
if typing.TYPE_CHECKING:
    from acme_connector import messages  # pragma: no cover


class Error(Exception):
    """Generic ACME connector error."""


class ClientError(Error):
    """Request could not be issued or its result could not be used."""


class UnsupportedMethod(ClientError):
    """HTTP method other than GET, POST or HEAD."""
    def __init__(self, method: Any) -> None:
        self.method = method
        super().__init__()

    def __str__(self) -> str:
        return 'HTTP request {0} not supported.'.format(self.method)


class AccountDeactivated(ClientError):
    """The account was deactivated, no further requests can be made."""

    def __str__(self) -> str:
        return 'The account was deactivated. No further requests can be made.'


class NetworkError(ClientError):
    """Connection, TLS, DNS or timeout failure while talking to the CA.

    :ivar str method: HTTP method of the failed request.
    :ivar str url: Absolute URL of the failed request.
    :ivar Exception error: The underlying `requests` exception.

    """
    def __init__(self, method: str, url: str, error: Exception) -> None:
        self.method = method
        self.url = url
        self.error = error
        super().__init__()

    def __str__(self) -> str:
        return 'Requesting {0} {1} failed: {2}'.format(self.method, self.url, self.error)


class DirectoryError(ClientError):
    """The CA directory could not be fetched or is incomplete."""
    def __init__(self, message: str,
                 response: Optional['messages.Response'] = None) -> None:
        self.message = message
        self.response = response
        super().__init__(message)

    def __str__(self) -> str:
        if self.response is None:
            return self.message
        return '{0}: {1} {2}\n{3}'.format(
            self.message, self.response.status_code,
            self.response.raw_headers, self.response.body)


class NonceError(ClientError):
    """Server nonce error."""


class MissingNonce(NonceError):
    """Missing nonce error.

    According to RFC 8555 an "ACME server MUST include an
    Replay-Nonce header field in each successful response to a POST it
    provides to a client (...)".

    :ivar headers: Mapping of HTTP headers

    """
    def __init__(self, headers: Mapping[str, str], *args: Any) -> None:
        super().__init__(*args)
        self.headers = dict(headers)

    def __str__(self) -> str:
        return ('Server response did not include a replay '
                'nonce, headers: {0} (This may be a service outage)'.format(
                    self.headers))


class ServerError(Error):
    """The CA answered with a 5xx status.

    :ivar str method: HTTP method.
    :ivar str url: Absolute request URL.
    :ivar int status_code: HTTP status code.
    :ivar str headers: Response header block.
    :ivar body: Parsed response body.

    """
    def __init__(self, method: str, url: str, status_code: int,
                 headers: str, body: Any) -> None:
        self.method = method
        self.url = url
        self.status_code = status_code
        self.headers = headers
        self.body = body
        super().__init__()

    def __str__(self) -> str:
        return 'Invalid response to {0} {1}. Code: {2} Header: {3} Body: {4}'.format(
            self.method, self.url, self.status_code, self.headers, self.body)


class KeyLoadError(Error):
    """Account key could not be read or parsed."""
    def __init__(self, source: Any, error: Exception) -> None:
        self.source = source
        self.error = error
        super().__init__()

    def __str__(self) -> str:
        return 'Unable to load private key ({0!r}): {1}'.format(self.source, self.error)


class SigningError(Error):
    """The signing primitive failed."""
