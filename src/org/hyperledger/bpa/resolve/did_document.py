"""DID document retrieval through a universal resolver.

Fetches ``{resolver}/1.0/identifiers/{did}`` and unwraps the DID document from
the resolution result.
"""

import asyncio
import logging
from typing import Any, Dict, Optional
from aiohttp import ClientError, ClientSession

from org.hyperledger.bpa.resolve.errors import (
    DidNotResolvableError,
    PartnerLookupError,
)

logger = logging.getLogger(__name__)


class DidDocumentClient:
    """Universal resolver client.

    Args:
        session: HTTP client session
        resolver_url: Base URL of the universal resolver
    """

    def __init__(self, session: ClientSession, resolver_url: str) -> None:
        self.session = session
        self.resolver_url = resolver_url.rstrip("/")

    def identifier_url(self, did: str) -> str:
        return f"{self.resolver_url}/1.0/identifiers/{did}"

    async def get_did_document(self, did: Optional[str]) -> Optional[Dict[str, Any]]:
        """Resolve a DID to its DID document.

        Args:
            did: DID to resolve

        Returns:
            The DID document, or None if the resolver returned an empty result

        Raises:
            DidNotResolvableError: The resolver does not know the DID
            PartnerLookupError: Transport failure or malformed response
        """
        if not did:
            raise DidNotResolvableError("No DID to resolve", did=did)

        try:
            async with self.session.get(self.identifier_url(did)) as resp:
                if resp.status != 200:
                    raise DidNotResolvableError(
                        f"DID {did} is not publicly resolvable (status {resp.status})",
                        did=did,
                    )
                body = await resp.json()
        except (ClientError, asyncio.TimeoutError, ValueError) as e:
            raise PartnerLookupError(
                f"DID document lookup for {did} failed: {e}", did=did
            ) from e

        if body is None:
            return None
        if not isinstance(body, dict):
            raise PartnerLookupError(
                f"Unexpected DID resolution result for {did}", did=did
            )
        if "didDocument" in body:
            return body.get("didDocument")
        return body
