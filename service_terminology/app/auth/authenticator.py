"""
Login handshake against the terminology server's auth endpoint.
"""

from __future__ import annotations

from typing import List, Optional

import httpx

from shared.errors import AuthError
from shared.logging import get_logger


def session_token_from_cookies(set_cookie_headers: List[str]) -> str:
    """Concatenate ``name=value;`` pairs in the order the server sent them.

    Cookie attributes (Path, Expires, HttpOnly, ...) are dropped. The result
    is sent back verbatim in the ``Cookie`` header of every later call.
    """
    pairs = []
    for header in set_cookie_headers:
        pair = header.split(";", 1)[0].strip()
        if "=" not in pair:
            continue
        pairs.append(pair + ";")
    return "".join(pairs)


class Authenticator:
    """Performs the service-account login and extracts the session token.

    A rejected or failed login raises once; retries belong to the caller.
    """

    def __init__(self, timeout: float = 30.0, client: Optional[httpx.AsyncClient] = None) -> None:
        self.logger = get_logger("terminology.auth.authenticator")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def login(self, username: str, password: str, auth_url: str) -> str:
        """Log in and return the session token built from the response cookies."""
        url = auth_url + "authenticate"
        self.logger.info("Logging in to terminology server", url=url, username=username)

        try:
            response = await self._client.post(url, json={"login": username, "password": password})
        except httpx.HTTPError as exc:
            self.logger.error("Terminology auth endpoint unreachable", url=url, error=str(exc))
            raise AuthError(
                "Terminology auth endpoint unreachable",
                details={"url": url, "error": str(exc)}
            ) from exc

        try:
            if not response.is_success:
                self.logger.error(
                    "Terminology login rejected",
                    url=url,
                    status_code=response.status_code,
                    reason=response.reason_phrase
                )
                raise AuthError(
                    f"Authentication of generic user failed. Status: {response.status_code}. "
                    f"Error: {response.reason_phrase}",
                    details={
                        "url": url,
                        "status_code": response.status_code,
                        "reason": response.reason_phrase,
                    }
                )

            token = session_token_from_cookies(response.headers.get_list("set-cookie"))
        finally:
            await response.aclose()

        self.logger.info("Terminology login succeeded", url=url, cookie_count=token.count(";"))
        return token
