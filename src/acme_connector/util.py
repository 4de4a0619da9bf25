"""ACME connector utilities."""
import json
from typing import Any
from typing import Union

import josepy as jose


def b64encode(data: Union[bytes, str]) -> str:
    """Encode data as URL-safe Base64 without padding.

    :param data: Bytes to encode. Strings are encoded as UTF-8 first.

    :returns: Base64url text, with trailing ``=`` stripped.
    :rtype: str

    """
    if isinstance(data, str):
        data = data.encode('utf-8')
    return jose.b64encode(data).decode('ascii')


def b64decode(data: Union[bytes, str]) -> bytes:
    """Decode unpadded URL-safe Base64.

    :raises ValueError: if ``data`` is not valid base64url.

    """
    return jose.b64decode(data)


def dump_payload(payload: Any) -> bytes:
    """Serialize a JWS payload to the exact bytes that will be signed.

    An empty payload (``None``, ``''`` or ``b''``) serializes to the empty
    byte string, which is what POST-as-GET requests carry. Strings and bytes
    are taken verbatim, anything else is dumped as compact JSON.

    :rtype: bytes

    """
    if payload is None:
        return b''
    if isinstance(payload, bytes):
        return payload
    if isinstance(payload, str):
        text = payload
    elif isinstance(payload, jose.JSONDeSerializable):
        text = payload.json_dumps(separators=(',', ':'))
    else:
        text = json.dumps(payload, separators=(',', ':'))
    # Some encoders escape "/"; the CA must see the URL as written.
    return text.replace('\\/', '/').encode('utf-8')
