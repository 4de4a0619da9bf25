"""Tests for acme_connector.crypto_util."""
import os
import sys
import unittest

from cryptography.hazmat.primitives.asymmetric import rsa
import josepy as jose
import pytest

from acme_connector import crypto_util
from acme_connector import errors
from acme_connector._internal.tests import test_util


class LoadPrivateKeyTest(unittest.TestCase):
    """Tests for acme_connector.crypto_util.load_private_key."""

    def setUp(self):
        self.expected = test_util.load_jwk('rsa2048_key.pem')

    def test_path(self):
        assert crypto_util.load_private_key(
            test_util.vector_path('rsa2048_key.pem')) == self.expected

    def test_pem_bytes(self):
        assert crypto_util.load_private_key(
            test_util.load_vector('rsa2048_key.pem')) == self.expected

    def test_jwk_passthrough(self):
        assert crypto_util.load_private_key(self.expected) is self.expected

    def test_cryptography_key(self):
        key = crypto_util.load_private_key(self.expected.key._wrapped)  # pylint: disable=protected-access
        assert isinstance(key, jose.JWKRSA)
        assert key == self.expected

    def test_missing_file(self):
        path = os.path.join(os.path.dirname(test_util.vector_path('rsa2048_key.pem')),
                            'does-not-exist.pem')
        with pytest.raises(errors.KeyLoadError) as excinfo:
            crypto_util.load_private_key(path)
        assert isinstance(excinfo.value.error, OSError)
        assert excinfo.value.source == path

    def test_garbage(self):
        with pytest.raises(errors.KeyLoadError):
            crypto_util.load_private_key(b'not a key')

    def test_public_key_rejected(self):
        with pytest.raises(errors.KeyLoadError):
            crypto_util.load_private_key(test_util.vector_path('rsa2048_pub.pem'))

    def test_ec_key_rejected(self):
        with pytest.raises(errors.KeyLoadError) as excinfo:
            crypto_util.load_private_key(test_util.vector_path('ec_secp256r1_key.pem'))
        assert 'not an RSA key' in str(excinfo.value)


def test_account_keys():
    keys = crypto_util.AccountKeys(private_key='/keys/private.pem', public_key='/keys/public.pem')
    assert keys['private_key'] == '/keys/private.pem'
    assert keys.public_key == '/keys/public.pem'


def test_load_generated_key():
    assert isinstance(crypto_util.load_private_key(
        rsa.generate_private_key(public_exponent=65537, key_size=2048)), jose.JWKRSA)


if __name__ == '__main__':
    sys.exit(pytest.main(sys.argv[1:] + [__file__]))  # pragma: no cover
