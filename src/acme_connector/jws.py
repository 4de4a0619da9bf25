"""ACME-specific JWS.

The JWS implementation in josepy only implements the base JOSE standard. In
order to support the new header fields defined in ACME, this module defines some
ACME-specific classes that layer on top of josepy, and the request signer used
by the connector.
"""
import logging
from typing import Any
from typing import Optional

import josepy as jose

from acme_connector import errors
from acme_connector import util

logger = logging.getLogger(__name__)


class Header(jose.Header):
    """ACME-specific JOSE Header. Implements nonce, kid, and url.

    The nonce is kept as the opaque token the CA handed out in its
    ``Replay-Nonce`` header and is never decoded.
    """
    nonce: Optional[str] = jose.field('nonce', omitempty=True)
    kid: Optional[str] = jose.field('kid', omitempty=True)  # type: ignore[assignment]
    url: Optional[str] = jose.field('url', omitempty=True)


class Signature(jose.Signature):
    """ACME-specific Signature. Uses ACME-specific Header for customer fields."""
    __slots__ = jose.Signature._orig_slots  # type: ignore[attr-defined]  # pylint: disable=protected-access,no-member

    header_cls = Header
    header: Header = jose.field(
        'header', omitempty=True, default=header_cls(),
        decoder=header_cls.from_json)


class JWS(jose.JWS):
    """ACME-specific JWS. Includes nonce, url, and kid in protected header."""
    signature_cls = Signature
    __slots__ = jose.JWS._orig_slots  # type: ignore[attr-defined]  # pylint: disable=protected-access

    @classmethod
    # type: ignore[override]  # pylint: disable=arguments-differ
    def sign(cls, payload: bytes, key: jose.JWK, alg: jose.JWASignature, nonce: Optional[str],
             url: Optional[str] = None, kid: Optional[str] = None) -> jose.JWS:
        # Per RFC 8555, jwk and kid are mutually exclusive, so only include a
        # jwk field if kid is not provided.
        include_jwk = kid is None
        return super().sign(payload, key=key, alg=alg,
                            protect=frozenset(['nonce', 'url', 'kid', 'jwk', 'alg']),
                            nonce=nonce, url=url, kid=kid,
                            include_jwk=include_jwk)


def sign_request(payload: Any, key: jose.JWKRSA, nonce: str, url: str,
                 kid: Optional[str] = None,
                 log: Optional[logging.Logger] = None) -> str:
    """Sign a request body for ``url``.

    Without ``kid`` the protected header embeds the public key (JWK mode,
    used for newAccount and revokeCert by certificate key); with it, the
    header references the account URL (KID mode).

    :param payload: Anything `.util.dump_payload` accepts. An empty
        payload produces a POST-as-GET body.
    :param josepy.JWKRSA key: Private key.
    :param str nonce: Replay nonce.
    :param str url: URL the body will be POSTed to.
    :param str kid: Account URL.
    :param logging.Logger log: Logger for the payload record, defaults to
        this module's logger.

    :raises .SigningError: if the signature cannot be computed.

    :returns: Flattened JWS JSON serialization.
    :rtype: str

    """
    jobj = util.dump_payload(payload)
    if log is None:
        log = logger
    log.debug('JWS payload:\n%s', jobj)
    try:
        signed = JWS.sign(jobj, key=key, alg=jose.RS256, nonce=nonce, url=url, kid=kid)
    except (jose.Error, ValueError, TypeError) as error:
        raise errors.SigningError('Unable to sign request to {0}: {1}'.format(url, error))
    return signed.json_dumps()
