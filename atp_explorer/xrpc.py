"""
XRPC protocol client over HTTP.

Issues AT Protocol queries as `GET {service}/xrpc/{nsid}` with query
parameters, and logs in with `com.atproto.server.createSession` to obtain a
bearer token.
"""

import logging
from typing import Any, Mapping, Optional

import httpx

from atp_explorer.errors import AuthError, ProtocolError

logger = logging.getLogger(__name__)

DEFAULT_SERVICE = "https://bsky.social"
DEFAULT_TIMEOUT_S = 10.0
CREATE_SESSION = "com.atproto.server.createSession"


class XrpcClient:
    """
    Async XRPC client.

    Handles session tokens, request encoding and error mapping. Every
    transport or API failure is raised as ProtocolError.
    """

    def __init__(
        self,
        service: str = DEFAULT_SERVICE,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize client.

        Args:
            service: PDS base URL.
            timeout_s: Request timeout in seconds.
            transport: Optional httpx transport (used to stub the network).
        """
        self.service = service.rstrip("/")
        self.timeout_s = timeout_s
        self.http = httpx.AsyncClient(timeout=timeout_s, transport=transport)

        self.access_jwt: Optional[str] = None
        self.refresh_jwt: Optional[str] = None
        self.handle: Optional[str] = None
        self.did: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.access_jwt is not None

    def url_for(self, nsid: str) -> str:
        return f"{self.service}/xrpc/{nsid}"

    def _headers(self, accept: str = "application/json") -> dict:
        headers = {"Accept": accept}
        if self.access_jwt:
            headers["Authorization"] = f"Bearer {self.access_jwt}"
        return headers

    async def login(self, identifier: str, password: str) -> None:
        """
        Create a session and store its tokens.

        Args:
            identifier: Handle, DID or email.
            password: Account or app password.

        Raises:
            AuthError: On transport failure, rejection or malformed reply.
        """
        url = self.url_for(CREATE_SESSION)
        logger.info(f"Login as {identifier} at {self.service}")
        try:
            res = await self.http.post(url, json={"identifier": identifier, "password": password})
        except httpx.HTTPError as e:
            raise AuthError(f"Auth request failed: {e}") from e

        if not res.is_success:
            raise AuthError(f"Auth failed ({res.status_code}): {res.text}", status=res.status_code)

        try:
            body = res.json()
            self.access_jwt = body["accessJwt"]
            self.refresh_jwt = body["refreshJwt"]
        except (ValueError, KeyError, TypeError) as e:
            raise AuthError(f"Failed to parse response as JSON: {e}") from e

        self.handle = body.get("handle", identifier)
        self.did = body.get("did")
        logger.info(f"Logged in as {self.handle} ({self.did})")

    def logout(self) -> None:
        """Forget session tokens."""
        self.access_jwt = None
        self.refresh_jwt = None
        self.handle = None
        self.did = None

    async def invoke(
        self, command_id: str, params: Mapping[str, str], accept: str = "application/json"
    ) -> Any:
        """
        Perform an XRPC query.

        Args:
            command_id: Method NSID.
            params: Query parameters; empty values are dropped.
            accept: Accept header for the response encoding.

        Returns:
            Decoded JSON body, or a descriptor for non-JSON bodies.

        Raises:
            ProtocolError: On transport failure, non-2xx status or bad JSON.
        """
        url = self.url_for(command_id)
        query = {name: value for name, value in params.items() if value != ""}
        try:
            res = await self.http.get(url, params=query, headers=self._headers(accept))
        except httpx.TimeoutException as e:
            raise ProtocolError(f"Request failed: timed out after {self.timeout_s}s ({e})") from e
        except httpx.HTTPError as e:
            raise ProtocolError(f"Request failed: {e}") from e

        logger.debug(f"GET {res.request.url} -> {res.status_code}")
        if not res.is_success:
            raise ProtocolError(
                f"Request failed ({res.status_code}): {res.text}", status=res.status_code
            )

        content_type = res.headers.get("content-type", "")
        if "json" not in content_type and content_type:
            return {"contentType": content_type, "size": len(res.content)}

        try:
            return res.json()
        except ValueError as e:
            raise ProtocolError(f"Failed to parse response: {e}") from e

    async def aclose(self) -> None:
        await self.http.aclose()
