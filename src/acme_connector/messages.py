"""ACME connector messages."""
import enum
import json
from typing import Any
from typing import List
from typing import Mapping
from typing import Optional
from typing import Union

import josepy as jose


class Method(enum.Enum):
    """HTTP methods the connector can issue."""
    GET = 'GET'
    POST = 'POST'
    HEAD = 'HEAD'

    def __str__(self) -> str:
        return self.value


class Directory(jose.JSONObjectWithFields):
    """Directory.

    Directory resources must be accessed by the exact field name in RFC8555
    (section 9.7.5). All five endpoint URLs are required; unknown fields are
    ignored.
    """

    class Meta(jose.JSONObjectWithFields):
        """Directory Meta."""
        terms_of_service: Optional[str] = jose.field('termsOfService', omitempty=True)
        website: Optional[str] = jose.field('website', omitempty=True)
        caa_identities: List[str] = jose.field('caaIdentities', omitempty=True, default=())
        external_account_required: bool = jose.field(
            'externalAccountRequired', omitempty=True, default=False)

    key_change: str = jose.field('keyChange')
    new_account: str = jose.field('newAccount')
    new_nonce: str = jose.field('newNonce')
    new_order: str = jose.field('newOrder')
    revoke_cert: str = jose.field('revokeCert')
    meta: Meta = jose.field('meta', omitempty=True, default=Meta(),
                            decoder=Meta.from_json)

    # RFC 8555 names, in the order a CA publishes them.
    ENDPOINTS = ('keyChange', 'newAccount', 'newNonce', 'newOrder', 'revokeCert')


class JSONBody(jose.ImmutableMap):
    """Response body that decoded as JSON.

    :ivar value: Decoded JSON value.

    """
    __slots__ = ('value',)

    def __str__(self) -> str:
        return json.dumps(self.value)


class RawBody(jose.ImmutableMap):
    """Response body that is not JSON (PEM chains, HTML error pages, HEAD).

    :ivar bytes content: Body exactly as received.

    """
    __slots__ = ('content',)

    def __str__(self) -> str:
        return self.content.decode('utf-8', errors='replace')


Body = Union[JSONBody, RawBody]


class Response(jose.ImmutableMap):
    """Classified HTTP response.

    :ivar str request: ``"METHOD URL"`` descriptor of the request.
    :ivar Method method: Request method.
    :ivar str url: Absolute request URL.
    :ivar int status_code: HTTP status code.
    :ivar headers: Case-insensitive mapping of response headers.
    :ivar str raw_headers: Response header block, one ``Name: value`` per line.
    :ivar body: `JSONBody` or `RawBody`.

    """
    __slots__ = ('request', 'method', 'url', 'status_code', 'headers',
                 'raw_headers', 'body')

    @property
    def ok(self) -> bool:
        """Was the status code below 400?"""
        return self.status_code < 400

    @property
    def json(self) -> Any:
        """Decoded JSON body, or ``None`` for a raw body."""
        if isinstance(self.body, JSONBody):
            return self.body.value
        return None

    @property
    def content(self) -> bytes:
        """Body bytes; JSON bodies are re-serialized."""
        if isinstance(self.body, RawBody):
            return self.body.content
        return str(self.body).encode('utf-8')

    @property
    def location(self) -> Optional[str]:
        """``Location`` header, if any."""
        return self.headers.get('Location')

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup."""
        return self.headers.get(name, default)


def format_headers(headers: Mapping[str, str]) -> str:
    """Render a header mapping as a header block."""
    return "\n".join("{0}: {1}".format(k, v) for k, v in headers.items())
