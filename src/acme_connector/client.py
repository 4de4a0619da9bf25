"""ACME connector API."""
import base64
import logging
import re
import threading
from typing import Any
from typing import Dict
from typing import Mapping
from typing import Optional
from typing import Union

import josepy as jose
import requests
from requests.adapters import HTTPAdapter

from acme_connector import crypto_util
from acme_connector import errors
from acme_connector import jws
from acme_connector import messages
from acme_connector.nonce import NonceManager

logger = logging.getLogger(__name__)

DEFAULT_NETWORK_TIMEOUT = 45

LE_PRODUCTION = 'https://acme-v02.api.letsencrypt.org'
LE_STAGING = 'https://acme-staging-v02.api.letsencrypt.org'

_SCHEME_RE = re.compile(r'^[A-Za-z][A-Za-z0-9+.-]*://')


class ClientNetwork:
    """Wrapper around requests that talks to a single ACME CA.

    Adds the ACME request headers, classifies responses and keeps the
    replay nonce up to date.

    :ivar str base_url: URL prepended to relative request paths.
    :ivar .NonceManager nonces: Replay nonce state.
    :ivar str new_nonce_url: ``newNonce`` endpoint, set once the directory
        is known.
    :ivar lock: Re-entrant lock serializing requests and nonce use.
    """
    JSON_CONTENT_TYPE = 'application/json'
    JOSE_CONTENT_TYPE = 'application/jose+json'
    REPLAY_NONCE_HEADER = 'Replay-Nonce'

    """Initialize.

    :param str base_url: Base URL of the ACME server.
    :param logging.Logger log: Logger receiving request, response and nonce
        records. Defaults to this module's logger.
    :param bool verify_ssl: Whether to verify certificates on SSL connections.
    :param str user_agent: String to send as User-Agent header.
    :param int timeout: Timeout for requests.
    """
    def __init__(self, base_url: str, log: Optional[logging.Logger] = None,
                 verify_ssl: bool = True, user_agent: str = 'acme-connector',
                 timeout: int = DEFAULT_NETWORK_TIMEOUT) -> None:
        self.base_url = base_url
        self.verify_ssl = verify_ssl
        self.user_agent = user_agent
        self.new_nonce_url: Optional[str] = None
        self.lock = threading.RLock()
        self.nonces = NonceManager(fetch=self._fetch_nonce, lock=self.lock)
        self.log = log if log is not None else logger
        self._account_deactivated = False
        self.session = requests.Session()
        self._default_timeout = timeout
        adapter = HTTPAdapter()

        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def __del__(self) -> None:
        # Try to close the session, but don't show exceptions to the
        # user if the call to close() fails.
        try:
            self.session.close()
        except Exception:  # pylint: disable=broad-except
            pass

    def close(self) -> None:
        """Release the underlying connections."""
        self.session.close()

    @property
    def log(self) -> logging.Logger:
        """Logger receiving every record of this network and its nonces."""
        return self._log

    @log.setter
    def log(self, value: logging.Logger) -> None:
        self._log = value
        self.nonces.log = value

    @property
    def account_deactivated(self) -> bool:
        """Has the account been deactivated?"""
        return self._account_deactivated

    @account_deactivated.setter
    def account_deactivated(self, value: bool) -> None:
        with self.lock:
            if self._account_deactivated and not value:
                raise ValueError('A deactivated account cannot be reactivated')
            self._account_deactivated = bool(value)

    def check_active(self) -> None:
        """Raise `.AccountDeactivated` once the account is deactivated."""
        if self._account_deactivated:
            raise errors.AccountDeactivated()

    def resolve_url(self, url: str) -> str:
        """Prepend `base_url` unless ``url`` is already absolute."""
        if _SCHEME_RE.match(url):
            return url
        return self.base_url + url

    def _send_request(self, method: messages.Method, url: str,
                      data: Optional[Union[str, bytes]] = None) -> requests.Response:
        """Send HTTP request.

        Makes sure that `verify_ssl` is respected. Logs request and
        response (with headers).

        :param .Method method: HTTP method.
        :param str url: Absolute URL.
        :param data: POST body, sent verbatim.

        :raises .NetworkError: in case of any connection problems

        :returns: HTTP Response
        :rtype: `requests.Response`

        """
        if method is messages.Method.POST:
            self.log.debug('Sending POST request to %s:\n%s', url, data)
        else:
            self.log.debug('Sending %s request to %s.', method, url)
        kwargs: Dict[str, Any] = {
            'headers': {
                'Accept': self.JSON_CONTENT_TYPE,
                'Content-Type': self.JOSE_CONTENT_TYPE,
                'User-Agent': self.user_agent,
            },
            'verify': self.verify_ssl,
            'timeout': self._default_timeout,
            # 3xx responses are handed to the caller like any other status.
            'allow_redirects': False,
        }
        if method is messages.Method.POST:
            kwargs['data'] = data
        try:
            response = self.session.request(method.value, url, **kwargs)
        except requests.exceptions.RequestException as error:
            raise errors.NetworkError(method.value, url, error) from error

        # Certificates and some error pages are not JSON; log the base64 of
        # anything that is not UTF-8 to keep binary data out of the logs.
        debug_content: Union[bytes, str]
        try:
            debug_content = response.content.decode('utf-8')
        except UnicodeDecodeError:
            debug_content = base64.b64encode(response.content)
        self.log.debug('Received response:\nHTTP %d\n%s\n\n%s',
                       response.status_code,
                       messages.format_headers(response.headers),
                       debug_content)
        return response

    @classmethod
    def _build_response(cls, method: messages.Method, url: str,
                        response: requests.Response) -> messages.Response:
        body: messages.Body
        if method is messages.Method.HEAD:
            body = messages.RawBody(content=b'')
        else:
            try:
                jobj = response.json()
            except ValueError:
                jobj = None
            if jobj is None:
                body = messages.RawBody(content=response.content)
            else:
                body = messages.JSONBody(value=jobj)
        return messages.Response(
            request='{0} {1}'.format(method, url),
            method=method,
            url=url,
            status_code=response.status_code,
            headers=response.headers,
            raw_headers=messages.format_headers(response.headers),
            body=body,
        )

    def request(self, method: Union[messages.Method, str], url: str,
                data: Optional[Union[str, bytes]] = None) -> messages.Response:
        """Send a request to the CA and classify the answer.

        Note that only 5xx statuses raise; every other status, including
        4xx, is returned for the caller to interpret.

        :param method: ``GET``, ``POST`` or ``HEAD``.
        :param str url: Absolute URL or path relative to `base_url`.
        :param data: Already serialized POST body.

        :raises .AccountDeactivated: if the account is deactivated.
        :raises .UnsupportedMethod: for any other method.
        :raises .NetworkError: if the CA could not be reached.
        :raises .ServerError: if the CA answered with a 5xx status.

        :rtype: `.Response`

        """
        with self.lock:
            self.check_active()
            try:
                method = messages.Method(method)
            except ValueError:
                raise errors.UnsupportedMethod(method)
            url = self.resolve_url(url)

            response = self._build_response(method, url, self._send_request(method, url, data))
            if response.status_code >= 500:
                raise errors.ServerError(method.value, url, response.status_code,
                                         response.raw_headers, response.body)

            nonce = response.headers.get(self.REPLAY_NONCE_HEADER)
            if nonce:
                self.nonces.capture(nonce.strip())
            elif method is messages.Method.POST:
                # Not expecting a new nonce with GET and HEAD requests.
                self.nonces.refresh()
            return response

    def get(self, url: str) -> messages.Response:
        """Send GET request."""
        return self.request(messages.Method.GET, url)

    def post(self, url: str, data: Optional[Union[str, bytes]] = None) -> messages.Response:
        """Send POST request with an already signed body."""
        return self.request(messages.Method.POST, url, data)

    def head(self, url: str) -> messages.Response:
        """Send HEAD request."""
        return self.request(messages.Method.HEAD, url)

    def _fetch_nonce(self) -> messages.Response:
        if self.new_nonce_url is None:
            raise errors.NonceError('No newNonce endpoint configured')
        return self.head(self.new_nonce_url)


class Connector:
    """Connector to an ACME CA.

    Resolves the directory and an initial nonce on construction, then
    issues requests and signs bodies on behalf of the account, order and
    authorization logic.

    :ivar .Directory directory: The CA directory.
    :ivar .ClientNetwork net: Client network.
    :ivar account_keys: `.AccountKeys` (or any mapping with a
        ``private_key`` entry) used when no key override is given.
    :ivar str account_url: Account URL once registered. Default ``kid``.
    """

    def __init__(self, base_url: str, account_keys: Mapping[str, Any],
                 log: Optional[logging.Logger] = None, verify_ssl: bool = True,
                 user_agent: str = 'acme-connector',
                 timeout: int = DEFAULT_NETWORK_TIMEOUT,
                 net: Optional[ClientNetwork] = None) -> None:
        """Initialize.

        :param str base_url: The ACME server URL, e.g. `LE_STAGING`.
        :param account_keys: Location of the account key files.
        :param logging.Logger log: Logger for requests and responses.
        :param .ClientNetwork net: Pre-built transport, otherwise one is
            created from the remaining arguments.

        :raises .DirectoryError: if the directory cannot be resolved.
        :raises .NonceError: if no initial nonce can be obtained.
        """
        self.account_keys = account_keys
        self.account_url: Optional[str] = None
        if net is None:
            net = ClientNetwork(base_url, log=log, verify_ssl=verify_ssl,
                                user_agent=user_agent, timeout=timeout)
        self.net = net
        self.directory = self.get_directory(self.net)
        self.net.new_nonce_url = self.directory.new_nonce
        self.net.nonces.refresh()

    def __enter__(self) -> 'Connector':
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Release the underlying connections."""
        self.net.close()

    @classmethod
    def get_directory(cls, net: ClientNetwork, path: str = '/directory') -> messages.Directory:
        """Retrieve the ACME directory (RFC 8555 section 7.1.1).

        :param .ClientNetwork net: Client network.
        :param str path: Directory path or URL.

        :raises .DirectoryError: unless the CA answers 200 with all the
            endpoints.

        :rtype: `.Directory`
        """
        response = net.get(path)
        if response.status_code != 200:
            raise errors.DirectoryError('Cannot fetch directories', response)
        jobj = response.json
        if not isinstance(jobj, dict):
            raise errors.DirectoryError('Directory is not a JSON object', response)
        try:
            directory = messages.Directory.from_json(jobj)
        except jose.DeserializationError as error:
            raise errors.DirectoryError(
                'Incomplete directory ({0})'.format(error), response)
        net.log.info('Resolved ACME directory at %s', response.url)
        return directory

    @property
    def base_url(self) -> str:
        """URL prepended to relative request paths."""
        return self.net.base_url

    @property
    def key_change(self) -> str:
        """``keyChange`` endpoint."""
        return self.directory.key_change

    @property
    def new_account(self) -> str:
        """``newAccount`` endpoint."""
        return self.directory.new_account

    @property
    def new_nonce(self) -> str:
        """``newNonce`` endpoint."""
        return self.directory.new_nonce

    @property
    def new_order(self) -> str:
        """``newOrder`` endpoint."""
        return self.directory.new_order

    @property
    def revoke_cert(self) -> str:
        """``revokeCert`` endpoint."""
        return self.directory.revoke_cert

    @property
    def nonces(self) -> NonceManager:
        """Replay nonce state."""
        return self.net.nonces

    @property
    def lock(self) -> Any:
        """Lock to hold around a sign-then-post sequence when the
        connector is shared between threads."""
        return self.net.lock

    @property
    def account_deactivated(self) -> bool:
        """Once set, every further request or signature fails."""
        return self.net.account_deactivated

    @account_deactivated.setter
    def account_deactivated(self, value: bool) -> None:
        self.net.account_deactivated = value

    def get(self, url: str) -> messages.Response:
        """Send GET request."""
        return self.net.get(url)

    def post(self, url: str, data: Optional[Union[str, bytes]] = None) -> messages.Response:
        """Send POST request; ``data`` is usually a `sign_with_kid` result."""
        return self.net.post(url, data)

    def head(self, url: str) -> messages.Response:
        """Send HEAD request."""
        return self.net.head(url)

    def sign_with_jwk(self, payload: Any, url: str,
                      key: Optional[crypto_util.KeySource] = None) -> str:
        """Sign with the public key embedded in the protected header.

        Used for newAccount, and for revokeCert when signing with the
        certificate key.

        :param payload: Request payload. ``None`` or ``''`` for POST-as-GET.
        :param str url: URL the body will be POSTed to.
        :param key: Private key (or its path) overriding the account key.
            ``None`` or an empty path selects the account key.

        :rtype: str
        """
        return self._sign(payload, url, None, key)

    def sign_with_kid(self, payload: Any, kid: Optional[str], url: str,
                      key: Optional[crypto_util.KeySource] = None) -> str:
        """Sign with a reference to the account URL.

        :param payload: Request payload. ``None`` or ``''`` for POST-as-GET.
        :param str kid: Account URL, defaults to `account_url`.
        :param str url: URL the body will be POSTed to.
        :param key: Private key (or its path) overriding the account key.
            ``None`` or an empty path selects the account key.

        :rtype: str
        """
        if kid is None:
            kid = self.account_url
        if kid is None:
            raise errors.ClientError('No account URL to use as key ID')
        return self._sign(payload, url, kid, key)

    def _sign(self, payload: Any, url: str, kid: Optional[str],
              key: Optional[crypto_util.KeySource]) -> str:
        with self.net.lock:
            self.net.check_active()
            if key is None or (isinstance(key, (str, bytes)) and not key):
                key = self.account_keys['private_key']
            jwk = crypto_util.load_private_key(key, log=self.net.log)
            nonce = self.net.nonces.consume()
            return jws.sign_request(payload, jwk, nonce, url, kid=kid, log=self.net.log)
