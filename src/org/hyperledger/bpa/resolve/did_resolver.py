"""Resolution of a partner's public DID and profile.

Covers the case of an incoming connection where the partner's public DID is
not known. Two triggers feed it:

1. A proof from a commercial register credential arrives. The proof discloses
   the partner's public DID, which is then resolved to a profile.
2. An incoming connection is established. The partner's DID is resolved
   directly; failing that, a DID embedded in the connection label
   (``did:sov:xxx:MyLabel``) is tried.

Both entry points run as detached background tasks. They never raise: a
partner that cannot be resolved stays unresolved until the next trigger.
"""

import logging
from typing import Any, Dict, Optional
import sentry_sdk

from org.hyperledger.bpa.app.metrics import MetricsClient, NoOpMetricsClient
from org.hyperledger.bpa.model.health import HealthGauge
from org.hyperledger.bpa.model.partner import Partner, PartnerProof, PartnerRepository
from org.hyperledger.bpa.notify import RedisNotificationSink, WebhookEventType
from org.hyperledger.bpa.resolve.did_document import DidDocumentClient
from org.hyperledger.bpa.resolve.errors import DidNotResolvableError, PartnerLookupError
from org.hyperledger.bpa.resolve.label import split_label
from org.hyperledger.bpa.resolve.lookup import (
    CredentialType,
    PartnerLookup,
    ResolvedProfile,
)
from org.hyperledger.bpa.resolve.schema import schema_get_name

logger = logging.getLogger(__name__)

COMMERCIAL_REGISTER_SCHEMA = "commercialregister"
LEGAL_NAME = "legalName"


class DidResolver:
    def __init__(
        self,
        partner_repository: PartnerRepository,
        partner_lookup: PartnerLookup,
        did_document_client: DidDocumentClient,
        notification_sink: RedisNotificationSink,
        metrics_client: Optional[MetricsClient] = None,
        health_gauge: Optional[HealthGauge] = None,
        schema_name: str = COMMERCIAL_REGISTER_SCHEMA,
    ) -> None:
        self.partner_repository = partner_repository
        self.partner_lookup = partner_lookup
        self.did_document_client = did_document_client
        self.notification_sink = notification_sink
        self.metrics_client = metrics_client or NoOpMetricsClient()
        self.health_gauge = health_gauge
        self.schema_name = schema_name

    async def resolve_from_proof(self, proof: PartnerProof) -> None:
        """Resolve a partner's public profile from a commercial register proof.

        Only acts for proofs of the commercial register schema, sent by an
        existing, unresolved partner that initiated the connection.

        Args:
            proof: The proof received from the partner
        """
        try:
            await self._resolve_from_proof(proof)
        except PartnerLookupError as e:
            logger.error("Could not lookup public did %s: %s", e.did, e)
            self._count("proof", "lookup_failed")
        except Exception as e:
            sentry_sdk.capture_exception(e)
            logger.exception(
                "Could not lookup public did for partner %s", proof.partner_id
            )
            self._count("proof", "exception", exception=type(e).__name__)
            await self._record_failure()

    async def _resolve_from_proof(self, proof: PartnerProof) -> None:
        if schema_get_name(proof.schema_id) != self.schema_name:
            return

        partner = await self.partner_repository.find_by_id(proof.partner_id)
        if partner is None:
            return
        if partner.verifiable_presentation is not None or not partner.incoming:
            return

        # A partner whose DID already resolves is public; nothing to do.
        did_document: Optional[Dict[str, Any]] = None
        try:
            did_document = await self.did_document_client.get_did_document(
                partner.did
            )
        except DidNotResolvableError as e:
            logger.debug("%s", e)
        except PartnerLookupError as e:
            logger.error("%s", e)
        if did_document is not None:
            return

        public_did = (proof.proof or {}).get("did")
        if public_did is None:
            return

        public_did = str(public_did)
        logger.debug("Resolved did: %s", public_did)
        profile = await self.partner_lookup.lookup_partner(public_did)

        partner.did = public_did
        partner.valid = profile.valid
        partner.verifiable_presentation = profile.verifiable_presentation
        partner.label = ""
        await self.partner_repository.update(partner)
        self._count("proof", "resolved")

    async def reconcile_incoming(self, partner: Partner) -> None:
        """Resolve the public profile of a partner behind an incoming connection.

        First tries the partner's DID as-is. If that does not yield a profile,
        tries a DID embedded in the connection label. A successful resolution
        is announced with a ``partner-added`` event.

        Args:
            partner: The partner that initiated the connection
        """
        try:
            await self._reconcile_incoming(partner)
        except Exception as e:
            sentry_sdk.capture_exception(e)
            logger.exception("Could not resolve incoming partner %s", partner.id)
            self._count("incoming", "exception", exception=type(e).__name__)
            await self._record_failure()

    async def _reconcile_incoming(self, partner: Partner) -> None:
        profile = await self.lookup_partner_safe(partner.did)
        if profile is not None:
            await self.partner_repository.update_verifiable_presentation(
                partner.id, profile.verifiable_presentation, profile.valid
            )
            await self.notification_sink.publish(
                WebhookEventType.partner_added, profile
            )
            self._count("incoming", "resolved")
            return

        connection_label = split_label(partner.label)
        if connection_label.did is None:
            self._count("incoming", "unresolved")
            return

        try:
            profile = await self.partner_lookup.lookup_partner(connection_label.did)
        except PartnerLookupError as e:
            logger.debug(
                "Did: %s from label of partner %s could not be resolved: %s",
                connection_label.did,
                partner.id,
                e,
            )
            self._count("incoming", "unresolved")
            return

        await self.partner_repository.update_verifiable_presentation(
            partner.id,
            profile.verifiable_presentation,
            profile.valid,
            label=connection_label.label,
            did=connection_label.did,
        )
        partner.verifiable_presentation = profile.verifiable_presentation
        partner.valid = profile.valid
        partner.label = connection_label.label
        partner.did = connection_label.did

        organizational_profile = next(
            (
                credential
                for credential in profile.credentials
                if credential.type == CredentialType.organizational_profile_credential
            ),
            None,
        )
        if organizational_profile is not None:
            legal_name = organizational_profile.credential_data.get(LEGAL_NAME)
            if legal_name is not None:
                partner.label = str(legal_name)
            await self.partner_repository.update(partner)

        await self.notification_sink.publish(WebhookEventType.partner_added, profile)
        self._count("incoming", "resolved_from_label")

    async def lookup_partner_safe(self, did: Optional[str]) -> Optional[ResolvedProfile]:
        """Look up a profile, treating every lookup failure as no result.

        Returns:
            The profile, if the DID resolves to one with a verifiable
            presentation; None otherwise
        """
        if not did:
            return None
        try:
            profile = await self.partner_lookup.lookup_partner(did)
        except PartnerLookupError:
            logger.debug("Did: %s could not be resolved", did)
            return None
        if profile.verifiable_presentation is None:
            return None
        return profile

    async def _record_failure(self) -> None:
        if self.health_gauge is not None:
            await self.health_gauge.record_failure()

    def _count(self, trigger: str, outcome: str, **tags: str) -> None:
        self.metrics_client.increment(
            f"bpa.resolve.{trigger}.{outcome}", 1, tag_dict=tags or None
        )
