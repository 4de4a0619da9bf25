"""Tests for acme_connector.jws."""
import json
import sys
import unittest
from unittest import mock

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
import josepy as jose
import pytest

from acme_connector import errors
from acme_connector import util
from acme_connector._internal.tests import test_util

KEY = test_util.load_jwk('rsa2048_key.pem')


def _decode(envelope):
    jobj = json.loads(envelope)
    assert set(jobj) == {'protected', 'payload', 'signature'}
    return (jobj, json.loads(util.b64decode(jobj['protected'])),
            util.b64decode(jobj['payload']))


def _verify(jobj, key=KEY):
    key.public_key().key.verify(
        util.b64decode(jobj['signature']),
        (jobj['protected'] + '.' + jobj['payload']).encode('ascii'),
        padding.PKCS1v15(), hashes.SHA256())


class HeaderTest(unittest.TestCase):
    """Tests for acme_connector.jws.Header."""

    def test_nonce_is_opaque(self):
        from acme_connector.jws import Header
        header = Header.from_json({'alg': 'RS256', 'nonce': 'abc123'})
        assert header.nonce == 'abc123'
        assert header.to_partial_json()['nonce'] == 'abc123'


class JWSTest(unittest.TestCase):
    """Tests for acme_connector.jws.JWS."""

    def setUp(self):
        self.privkey = KEY
        self.pubkey = self.privkey.public_key()
        self.nonce = 'Tg'
        self.url = 'hi'
        self.kid = 'baaaaa'

    def test_kid_serialize(self):
        from acme_connector.jws import JWS
        jws = JWS.sign(payload=b'foo', key=self.privkey,
                       alg=jose.RS256, nonce=self.nonce,
                       url=self.url, kid=self.kid)
        assert jws.signature.combined.nonce == self.nonce
        assert jws.signature.combined.url == self.url
        assert jws.signature.combined.kid == self.kid
        assert jws.signature.combined.jwk is None

        assert jws == JWS.from_json(jws.to_json())

    def test_jwk_serialize(self):
        from acme_connector.jws import JWS
        jws = JWS.sign(payload=b'foo', key=self.privkey,
                       alg=jose.RS256, nonce=self.nonce,
                       url=self.url)
        assert jws.signature.combined.kid is None
        assert jws.signature.combined.jwk == self.pubkey
        assert jws.verify(self.pubkey)


class SignRequestTest(unittest.TestCase):
    """Tests for acme_connector.jws.sign_request."""

    def test_jwk_mode(self):
        from acme_connector.jws import sign_request
        payload = {'termsOfServiceAgreed': True, 'contact': ['mailto:admin@example.org']}
        envelope = sign_request(payload, KEY, 'abc123', 'https://ca/acme/new-acct')
        jobj, protected, raw_payload = _decode(envelope)

        assert protected['alg'] == 'RS256'
        assert protected['nonce'] == 'abc123'
        assert protected['url'] == 'https://ca/acme/new-acct'
        assert 'kid' not in protected
        numbers = KEY.key.private_numbers().public_numbers
        assert protected['jwk']['kty'] == 'RSA'
        assert protected['jwk']['n'] == util.b64encode(
            numbers.n.to_bytes((numbers.n.bit_length() + 7) // 8, 'big'))
        assert protected['jwk']['e'] == 'AQAB'
        assert json.loads(raw_payload) == payload
        _verify(jobj)

    def test_kid_mode(self):
        from acme_connector.jws import sign_request
        envelope = sign_request({'status': 'deactivated'}, KEY, 'abc123',
                                'https://ca/acme/acct/1', kid='https://ca/acme/acct/1')
        jobj, protected, raw_payload = _decode(envelope)

        assert protected == {'alg': 'RS256', 'kid': 'https://ca/acme/acct/1',
                             'nonce': 'abc123', 'url': 'https://ca/acme/acct/1'}
        assert raw_payload == b'{"status":"deactivated"}'
        _verify(jobj)

    def test_post_as_get(self):
        from acme_connector.jws import sign_request
        for empty in (None, ''):
            jobj, _, raw_payload = _decode(sign_request(empty, KEY, 'n', 'https://ca/o/1', kid='k'))
            assert jobj['payload'] == ''
            assert raw_payload == b''
            _verify(jobj)

    def test_empty_object_payload(self):
        from acme_connector.jws import sign_request
        jobj, _, raw_payload = _decode(sign_request({}, KEY, 'n', 'https://ca/chall/1', kid='k'))
        assert jobj['payload'] == 'e30'
        assert raw_payload == b'{}'

    def test_string_payload_verbatim(self):
        from acme_connector.jws import sign_request
        jobj, _, raw_payload = _decode(
            sign_request('{"csr":"MIIB"}', KEY, 'n', 'https://ca/finalize/1', kid='k'))
        assert raw_payload == b'{"csr":"MIIB"}'
        _verify(jobj)

    def test_signature_does_not_verify_with_other_key(self):
        from cryptography.exceptions import InvalidSignature
        from acme_connector.jws import sign_request
        jobj, _, _ = _decode(sign_request({}, KEY, 'n', 'u', kid='k'))
        with pytest.raises(InvalidSignature):
            _verify(jobj, test_util.load_jwk('rsa2048_key_2.pem'))

    def test_signing_failure(self):
        from acme_connector.jws import sign_request
        with mock.patch('acme_connector.jws.JWS.sign') as mock_sign:
            mock_sign.side_effect = jose.Error('boom')
            with pytest.raises(errors.SigningError):
                sign_request({}, KEY, 'n', 'u')


if __name__ == '__main__':
    sys.exit(pytest.main(sys.argv[1:] + [__file__]))  # pragma: no cover
