"""
=============================================================================
HTTP DIGEST AUTHENTICATION (RFC 2617)
=============================================================================

Digest auth proves the client knows the password without sending it.

=============================================================================
THE EXCHANGE
=============================================================================

    Client                                              Server
      │  GET /dir/index.html                               │
      │ ─────────────────────────────────────────────────► │
      │                                                    │
      │  401 Unauthorized                                  │
      │  WWW-Authenticate: Digest realm="testrealm@host.com",
      │                    qop="auth,auth-int",            │
      │                    nonce="dcd98b71...",            │
      │                    opaque="5ccc069c..."            │
      │ ◄───────────────────────────────────────────────── │
      │                                                    │
      │  GET /dir/index.html                               │
      │  Authorization: Digest username="Mufasa",          │
      │                 realm="testrealm@host.com",        │
      │                 nonce="dcd98b71...",               │
      │                 uri="/dir/index.html",             │
      │                 response="6629fae4...", ...        │
      │ ─────────────────────────────────────────────────► │

=============================================================================
THE HASHES
=============================================================================

    A1 = MD5(username:realm:password)
         MD5-sess: MD5( MD5(username:realm:password) :nonce:cnonce )

    A2 = MD5(method:uri)
         auth-int: MD5(method:uri:MD5(body))

    response = MD5(A1:nonce:A2)                        no qop
               MD5(A1:nonce:nc:cnonce:qop:A2)          qop=auth / auth-int

The server runs the same computation with its copy of the password and
compares. Nothing here is a secret beyond the password itself, which is
why the whole thing is a pure function of the fields below.
=============================================================================
"""

import hashlib
import hmac
import logging
import re
import secrets
from typing import List, Optional, Union

from ..exceptions import IncompleteCredentialError, ParseError
from ..http.headers import Header, parse_parameters, unfold


logger = logging.getLogger("httpkit.auth")

# "WWW-Authenticate: Digest ..." → ("WWW-Authenticate", "Digest ...")
HEADER_LINE_PATTERN = re.compile(r"^([\w-]+):\s*(.*)$", re.DOTALL)


def _md5(data: Union[str, bytes]) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.md5(data).hexdigest()


def split_header(header: Union[str, Header]) -> tuple:
    """Return (header name or None, header value) for a raw header."""
    if isinstance(header, Header):
        return header.name, header.values_as_strings()

    text = unfold(header)
    match = HEADER_LINE_PATTERN.match(text)
    if match:
        return match.group(1), match.group(2).strip()
    return None, text


class Digest:
    """
    Digest credentials and challenge state.

    Build one directly, from a client Authorization header (server side),
    or from a server WWW-Authenticate challenge (client side):

        digest = Digest.create_from_www_auth(
            response.get_header_value("WWW-Authenticate"),
            "Mufasa", "Circle Of Life", "/dir/index.html",
        )
        request.headers.add("Authorization", str(digest))
    """

    ALGO_MD5 = "MD5"
    ALGO_MD5_SESS = "MD5-sess"

    QOP_AUTH = "auth"
    QOP_AUTH_INT = "auth-int"

    def __init__(
        self,
        realm: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        uri: Optional[str] = None,
        nonce: Optional[str] = None,
        nonce_count: Optional[str] = None,
        client_nonce: Optional[str] = None,
        method: str = "GET",
        algorithm: str = ALGO_MD5,
        qop: Optional[str] = None,
        opaque: Optional[str] = None,
        body: Union[str, bytes, None] = None,
        stale: bool = False,
    ):
        self.realm = realm
        self.username = username
        self.password = password
        self.uri = uri
        self.nonce = nonce
        self.nonce_count = nonce_count
        self.client_nonce = client_nonce
        self.method = method
        self.algorithm = algorithm
        self.qop = qop
        self.opaque = opaque
        self.body = body
        self.stale = stale

        # The raw challenge this digest was built from, if any
        self.www_auth: Optional[str] = None
        # The response hash a client sent, when built from an Authorization header
        self.client_response: Optional[str] = None

        self.errors: List[str] = []

    # =========================================================================
    # FACTORIES
    # =========================================================================

    @classmethod
    def create_from_header(cls, header: Union[str, Header], password: str) -> "Digest":
        """
        Parse a client "Authorization: Digest ..." header.

        Used on the server side: combine what the client sent with the
        password on record, then call verify().

        Raises:
            ParseError: If the scheme is not Digest or realm, username,
                        nonce or uri is missing
        """
        _, value = split_header(header)
        if not value.startswith("Digest"):
            raise ParseError("The auth header is not digest.")

        params = parse_parameters(value[len("Digest"):])

        for name in ("realm", "username", "nonce", "uri"):
            if not params.get(name):
                raise ParseError(f"The {name} is not set.")

        digest = cls(
            realm=params["realm"],
            username=params["username"],
            password=password,
            uri=params["uri"],
            nonce=params["nonce"],
            nonce_count=params.get("nc"),
            client_nonce=params.get("cnonce"),
            algorithm=params.get("algorithm", cls.ALGO_MD5),
            qop=params.get("qop"),
            opaque=params.get("opaque"),
        )
        digest.client_response = params.get("response")
        return digest

    @classmethod
    def create_from_www_auth(
        cls,
        header: Union[str, Header],
        username: str,
        password: str,
        uri: str,
    ) -> "Digest":
        """
        Parse a server "WWW-Authenticate: Digest ..." challenge.

        The challenge may span several lines. When the server asks for a
        qop (or for MD5-sess) a client nonce and a first nonce count are
        generated so the digest is ready to send.

        Raises:
            ParseError: If the scheme is not Digest or realm, nonce or
                        opaque is missing
        """
        name, value = split_header(header)
        if not value.startswith("Digest"):
            raise ParseError("The auth header is not digest.")

        params = parse_parameters(value[len("Digest"):])

        for param in ("realm", "nonce", "opaque"):
            if not params.get(param):
                raise ParseError(f"The {param} is not set.")

        digest = cls(
            realm=params["realm"],
            username=username,
            password=password,
            uri=uri,
            nonce=params["nonce"],
            opaque=params["opaque"],
            algorithm=params.get("algorithm") or cls.ALGO_MD5,
        )

        qop = params.get("qop")
        if qop:
            options = [q.strip() for q in qop.split(",")]
            if cls.QOP_AUTH_INT in qop:
                digest.qop = cls.QOP_AUTH_INT
            elif cls.QOP_AUTH in options:
                digest.qop = cls.QOP_AUTH

        stale = params.get("stale")
        if stale:
            digest.stale = stale.lower() == "true"

        if digest.qop or digest.algorithm == cls.ALGO_MD5_SESS:
            digest.nonce_count = "00000001"
            digest.client_nonce = secrets.token_hex(16)

        digest.www_auth = f"{name or 'WWW-Authenticate'}: {value}"
        logger.debug(
            "Digest challenge for realm %r (qop=%s, algorithm=%s, stale=%s)",
            digest.realm, digest.qop, digest.algorithm, digest.stale,
        )
        return digest

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def is_valid(self) -> bool:
        """
        Check that every field the hash needs is set.

        All checks run; every failure is recorded in self.errors.
        """
        self.errors = []

        if not (self.realm and self.username and self.password and self.nonce):
            self.errors.append(
                "One or more of the basic parameters were not set "
                "(realm, username, password or nonce)."
            )

        if self.algorithm == self.ALGO_MD5_SESS and not self.client_nonce:
            self.errors.append("The client nonce was not set for the MD5-sess algorithm.")

        if self.qop == self.QOP_AUTH_INT and self.body is None:
            self.errors.append("The entity body was not set for the auth-int QOP.")

        if self.qop and self.QOP_AUTH in self.qop and not (self.nonce_count and self.client_nonce):
            self.errors.append(
                "Either the nonce count or client nonce was not set for the auth QOP."
            )

        return not self.errors

    def has_errors(self) -> bool:
        return bool(self.errors)

    # =========================================================================
    # HASHING
    # =========================================================================

    def compute_response(self) -> str:
        """
        Compute the response hash.

        Raises:
            IncompleteCredentialError: If is_valid() fails
        """
        if not self.is_valid():
            raise IncompleteCredentialError(" ".join(self.errors))

        a1 = _md5(f"{self.username}:{self.realm}:{self.password}")
        if self.algorithm == self.ALGO_MD5_SESS:
            a1 = _md5(f"{a1}:{self.nonce}:{self.client_nonce}")

        if self.qop == self.QOP_AUTH_INT:
            a2 = _md5(f"{self.method}:{self.uri}:{_md5(self.body)}")
        else:
            a2 = _md5(f"{self.method}:{self.uri}")

        if self.qop:
            return _md5(
                f"{a1}:{self.nonce}:{self.nonce_count}:{self.client_nonce}:{self.qop}:{a2}"
            )
        return _md5(f"{a1}:{self.nonce}:{a2}")

    def create_digest_string(self) -> str:
        """
        Render the Authorization header value.

            Digest username="...", realm="...", nonce="...", uri="...", response="..."

        followed by qop, nc, cnonce, opaque and algorithm when they apply.
        """
        response = self.compute_response()

        parts = [
            f'username="{self.username}"',
            f'realm="{self.realm}"',
            f'nonce="{self.nonce}"',
            f'uri="{self.uri}"',
            f'response="{response}"',
        ]
        if self.qop:
            parts.append(f"qop={self.qop}")
            parts.append(f"nc={self.nonce_count}")
            parts.append(f'cnonce="{self.client_nonce}"')
        if self.opaque:
            parts.append(f'opaque="{self.opaque}"')
        if self.algorithm and self.algorithm != self.ALGO_MD5:
            parts.append(f"algorithm={self.algorithm}")

        return "Digest " + ", ".join(parts)

    def verify(self, response: Optional[str] = None) -> bool:
        """
        Compare a client's response hash with the expected one.

        Defaults to the hash captured by create_from_header().
        """
        response = response or self.client_response
        if not response or not self.is_valid():
            return False
        return hmac.compare_digest(self.compute_response(), response)

    def __str__(self) -> str:
        return self.create_digest_string()

    def __repr__(self) -> str:
        return (
            f"Digest(realm={self.realm!r}, username={self.username!r}, "
            f"uri={self.uri!r}, qop={self.qop!r}, algorithm={self.algorithm!r})"
        )
