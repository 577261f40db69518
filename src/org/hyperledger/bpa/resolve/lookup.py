"""Public partner profile lookup.

Resolves a DID to its DID document, follows the document's ``profile``
service endpoint, and reads the partner's verifiable presentation from it.
Signature verification of the presentation happens upstream; the lookup only
reports whether a proof section is present.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Dict, List, Optional
from aiohttp import ClientError, ClientSession
from pydantic import BaseModel, Field, ValidationError

from org.hyperledger.bpa.resolve.did_document import DidDocumentClient
from org.hyperledger.bpa.resolve.errors import (
    DidNotResolvableError,
    PartnerLookupError,
)

logger = logging.getLogger(__name__)

PROFILE_SERVICE_TYPE = "profile"


class CredentialType(str, Enum):
    """Credential types the resolver tells apart."""

    organizational_profile_credential = "OrganizationalProfileCredential"
    commercial_register_credential = "CommercialRegisterCredential"
    other = "Other"


class PartnerCredential(BaseModel):
    type: CredentialType
    credential_data: Dict[str, Any] = Field(default_factory=dict)


class ResolvedProfile(BaseModel):
    """Public profile of a partner as found behind its DID."""

    did: str
    valid: bool = False
    verifiable_presentation: Optional[Dict[str, Any]] = None
    credentials: List[PartnerCredential] = Field(default_factory=list)


def profile_predicate(value: Dict[str, Any]) -> bool:
    """Check if a DID document service entry is a partner profile endpoint."""
    return (
        isinstance(value, dict)
        and str(value.get("type", "")).lower() == PROFILE_SERVICE_TYPE
        and isinstance(value.get("serviceEndpoint"), str)
    )


def credential_type_of(types: Any) -> CredentialType:
    """Pick the first known credential type from a VC ``type`` member."""
    if isinstance(types, str):
        types = [types]
    if not isinstance(types, list):
        return CredentialType.other
    for value in types:
        try:
            return CredentialType(value)
        except ValueError:
            continue
    return CredentialType.other


def credential_subject_of(subject: Any) -> Dict[str, Any]:
    """Take the credential subject, or the first one if the VC lists several."""
    if isinstance(subject, list):
        subject = next((value for value in subject if isinstance(value, dict)), None)
    if not isinstance(subject, dict):
        return {}
    return subject


def parse_credentials(verifiable_presentation: Dict[str, Any]) -> List[PartnerCredential]:
    credentials = verifiable_presentation.get("verifiableCredential") or []
    if isinstance(credentials, dict):
        credentials = [credentials]
    if not isinstance(credentials, list):
        return []
    return [
        PartnerCredential(
            type=credential_type_of(vc.get("type")),
            credential_data=credential_subject_of(vc.get("credentialSubject")),
        )
        for vc in credentials
        if isinstance(vc, dict)
    ]


def build_profile(did: str, verifiable_presentation: Dict[str, Any]) -> ResolvedProfile:
    return ResolvedProfile(
        did=did,
        valid=verifiable_presentation.get("proof") is not None,
        verifiable_presentation=verifiable_presentation,
        credentials=parse_credentials(verifiable_presentation),
    )


class PartnerLookup:
    """Looks up a partner's public profile by DID."""

    def __init__(
        self, session: ClientSession, did_document_client: DidDocumentClient
    ) -> None:
        self.session = session
        self.did_document_client = did_document_client

    async def fetch_presentation(self, endpoint: str, did: str) -> Dict[str, Any]:
        try:
            async with self.session.get(endpoint) as resp:
                if resp.status != 200:
                    raise PartnerLookupError(
                        f"Profile endpoint {endpoint} of {did} returned status {resp.status}",
                        did=did,
                    )
                body = await resp.json()
        except (ClientError, asyncio.TimeoutError, ValueError) as e:
            raise PartnerLookupError(
                f"Profile endpoint {endpoint} of {did} failed: {e}", did=did
            ) from e

        if not isinstance(body, dict):
            raise PartnerLookupError(
                f"Profile endpoint {endpoint} of {did} did not return a presentation",
                did=did,
            )
        return body

    async def lookup_partner(self, did: str) -> ResolvedProfile:
        """Resolve a DID to the partner's public profile.

        Args:
            did: Public DID of the partner

        Returns:
            ResolvedProfile built from the partner's verifiable presentation

        Raises:
            PartnerLookupError: The profile could not be resolved
        """
        did_document = await self.did_document_client.get_did_document(did)
        if did_document is None:
            raise DidNotResolvableError(f"No DID document for {did}", did=did)
        if not isinstance(did_document, dict):
            raise PartnerLookupError(f"Malformed DID document for {did}", did=did)

        services = did_document.get("service") or []
        if isinstance(services, dict):
            services = [services]
        if not isinstance(services, list):
            services = []
        service = next(filter(profile_predicate, services), None)
        if service is None:
            raise PartnerLookupError(f"No profile endpoint for {did}", did=did)

        verifiable_presentation = await self.fetch_presentation(
            service["serviceEndpoint"], did
        )
        logger.debug("Found profile for %s at %s", did, service["serviceEndpoint"])
        try:
            return build_profile(did, verifiable_presentation)
        except ValidationError as e:
            raise PartnerLookupError(
                f"Malformed presentation for {did}: {e}", did=did
            ) from e
