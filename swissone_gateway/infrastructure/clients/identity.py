"""Identity provider HTTP client for resolving session tokens"""

import httpx
from dataclasses import dataclass
from typing import Optional
from swissone_gateway.domain.exceptions import IdentityProviderError
from swissone_gateway.config import settings


@dataclass
class Identity:
    """Authenticated principal as reported by the identity provider"""

    uid: str
    email: str


class IdentityClient:
    """Client for the external identity provider's session endpoint"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.identity_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def resolve(self, token: str) -> Optional[Identity]:
        """
        Resolve a bearer token to an identity.

        Returns:
            The identity, or None when the provider rejects the token

        Raises:
            IdentityProviderError: On timeout, unexpected HTTP errors, or invalid response
        """
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(
                    "/v1/session",
                    headers={"Authorization": f"Bearer {token}"},
                )
                if response.status_code in (401, 403):
                    return None
                response.raise_for_status()
                data = response.json()
                return Identity(uid=data["uid"], email=data.get("email") or "")

            except httpx.TimeoutException as e:
                raise IdentityProviderError(f"Identity provider timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise IdentityProviderError(f"Identity provider error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise IdentityProviderError(f"Identity provider unreachable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                raise IdentityProviderError(f"Invalid session data from identity provider: {e}") from e
