"""Replay nonce bookkeeping."""
import logging
import threading
import time
import typing
from typing import Any
from typing import Callable
from typing import Optional

from acme_connector import errors

if typing.TYPE_CHECKING:
    from acme_connector import messages  # pragma: no cover

logger = logging.getLogger(__name__)

MAX_NONCE_AGE = 60
"""Seconds after which a stored nonce is considered stale."""


class NonceManager:
    """Holds the current replay nonce and the time it was captured.

    The manager starts out empty. `capture` stores a token taken from a
    ``Replay-Nonce`` response header, `consume` hands the current token to
    the signer after refreshing it if it is missing or older than
    ``max_age``. The actual network refresh is delegated to ``fetch``,
    which is expected to route a ``HEAD newNonce`` through the transport so
    that the answer comes back in via `capture`.

    :ivar fetch: Callable issuing the nonce request and returning the
        `.messages.Response` of the ``HEAD``.
    :ivar int max_age: Freshness window in seconds.
    :ivar lock: Re-entrant lock guarding the token. `.ClientNetwork` passes
        its own request lock here.
    :ivar log: Logger for nonce records, defaults to this module's logger.

    """

    def __init__(self, fetch: Optional[Callable[[], 'messages.Response']] = None,
                 max_age: int = MAX_NONCE_AGE,
                 clock: Optional[Callable[[], float]] = None,
                 lock: Optional[Any] = None,
                 log: Optional[logging.Logger] = None) -> None:
        self.fetch = fetch
        self.log = log if log is not None else logger
        self.max_age = max_age
        self._clock = clock
        self._token: Optional[str] = None
        self._captured_at: Optional[float] = None
        self._lock = lock if lock is not None else threading.RLock()

    def _now(self) -> float:
        return self._clock() if self._clock is not None else time.time()

    @property
    def token(self) -> Optional[str]:
        """Current token, stale or not."""
        return self._token

    @property
    def age(self) -> Optional[float]:
        """Seconds since the current token was captured."""
        with self._lock:
            if self._captured_at is None:
                return None
            return abs(self._now() - self._captured_at)

    def is_stale(self) -> bool:
        """Is the token missing or outside the freshness window?"""
        with self._lock:
            # abs() so that a clock stepping backwards also expires the nonce
            return (self._token is None or self._captured_at is None or
                    abs(self._now() - self._captured_at) > self.max_age)

    def capture(self, token: str) -> None:
        """Store a new token, stamped with the current time."""
        with self._lock:
            self.log.debug('Storing nonce: %s', token)
            self._token = token
            self._captured_at = self._now()

    def clear(self) -> None:
        """Forget the current token."""
        with self._lock:
            self._token = None
            self._captured_at = None

    def refresh(self) -> None:
        """Request a new nonce from the CA.

        :raises .NonceError: if no fetch callable is configured, or the CA
            answered with anything but 200.
        :raises .MissingNonce: if the CA answered 200 without a nonce.

        """
        with self._lock:
            if self.fetch is None:
                raise errors.NonceError('No newNonce endpoint configured')
            self.log.debug('Requesting fresh nonce')
            self.clear()
            response = self.fetch()
            if response.status_code != 200:
                raise errors.NonceError(
                    'Could not request a nonce, got code {0}'.format(response.status_code))
            if self._token is None:
                raise errors.MissingNonce(response.headers)

    def refresh_if_stale(self) -> None:
        """Refresh unless the current token is still fresh."""
        with self._lock:
            if self.is_stale():
                self.refresh()

    def consume(self) -> str:
        """Return a token that is at most ``max_age`` seconds old."""
        with self._lock:
            self.refresh_if_stale()
            assert self._token is not None
            return self._token
