"""Crypto utilities."""
import logging
import os
from typing import Optional
from typing import Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
import josepy as jose

from acme_connector import errors

logger = logging.getLogger(__name__)

KeySource = Union[str, 'os.PathLike[str]', bytes, jose.JWKRSA, rsa.RSAPrivateKey]


class AccountKeys(jose.ImmutableMap):
    """Locations of the account key pair.

    :ivar str private_key: Path to the PEM encoded RSA private key.
    :ivar str public_key: Path to the PEM encoded public key.

    """
    __slots__ = ('private_key', 'public_key')


def load_private_key(source: KeySource,
                     log: Optional[logging.Logger] = None) -> jose.JWKRSA:
    """Load an RSA account key.

    :param source: Path to a PEM file, PEM bytes, or an already loaded
        `josepy.JWKRSA` or `cryptography` RSA private key.
    :param logging.Logger log: Logger, defaults to this module's logger.

    :raises .KeyLoadError: if the file cannot be read, or does not hold an
        unencrypted RSA private key.

    :returns: The private key.
    :rtype: `josepy.JWKRSA`

    """
    if isinstance(source, jose.JWKRSA):
        return source
    if isinstance(source, rsa.RSAPrivateKey):
        return jose.JWKRSA(key=source)

    name = '<PEM>' if isinstance(source, bytes) else source
    if isinstance(source, bytes):
        pem = source
    else:
        try:
            with open(source, 'rb') as f:
                pem = f.read()
        except OSError as error:
            raise errors.KeyLoadError(source, error)

    try:
        key = serialization.load_pem_private_key(pem, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as error:
        raise errors.KeyLoadError(name, error)
    if not isinstance(key, rsa.RSAPrivateKey):
        raise errors.KeyLoadError(
            name, TypeError('{0} is not an RSA key'.format(type(key).__name__)))
    if log is None:
        log = logger
    log.debug('Loaded %d-bit RSA account key', key.key_size)
    return jose.JWKRSA(key=key)
