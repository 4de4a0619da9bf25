"""ACME connector.

Transport and request signing for an `ACME protocol`_ client: directory
discovery, replay nonce handling, GET/POST/HEAD dispatch and the two JWS
signing modes (embedded JWK and account key ID).

.. _`ACME protocol`: https://datatracker.ietf.org/doc/html/rfc8555

"""
from acme_connector.client import ClientNetwork
from acme_connector.client import Connector
from acme_connector.client import DEFAULT_NETWORK_TIMEOUT
from acme_connector.client import LE_PRODUCTION
from acme_connector.client import LE_STAGING
from acme_connector.crypto_util import AccountKeys
from acme_connector.messages import Directory
from acme_connector.messages import Method
from acme_connector.messages import Response
from acme_connector.nonce import MAX_NONCE_AGE
from acme_connector.nonce import NonceManager
from acme_connector.util import b64decode
from acme_connector.util import b64encode

__all__ = [
    'AccountKeys',
    'ClientNetwork',
    'Connector',
    'DEFAULT_NETWORK_TIMEOUT',
    'Directory',
    'LE_PRODUCTION',
    'LE_STAGING',
    'MAX_NONCE_AGE',
    'Method',
    'NonceManager',
    'Response',
    'b64decode',
    'b64encode',
]
