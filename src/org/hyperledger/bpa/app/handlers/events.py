"""Intake of partner events from the agent.

The agent reports received proofs and newly established connections here.
Each event schedules a resolution task and is acknowledged with 202 before the
task runs.
"""

import json
import logging
from aiohttp import web
from pydantic import BaseModel, ValidationError

from org.hyperledger.bpa.app.config import (
    DidResolverAppKey,
    PartnerRepositoryAppKey,
    TaskDispatcherAppKey,
)

logger = logging.getLogger(__name__)


class ProofReceivedEvent(BaseModel):
    proof_id: str


class ConnectionEstablishedEvent(BaseModel):
    partner_id: str


def json_error(exc_class, **body):
    return exc_class(body=json.dumps(body), content_type="application/json")


async def read_event(request: web.Request, model):
    try:
        return model.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        raise json_error(web.HTTPBadRequest, error="Invalid event", detail=str(e))


async def handle_proof_received(request: web.Request):
    event = await read_event(request, ProofReceivedEvent)

    proof = await request.app[PartnerRepositoryAppKey].find_proof_by_id(
        event.proof_id
    )
    if proof is None:
        raise json_error(web.HTTPNotFound, error="Unknown proof", id=event.proof_id)

    did_resolver = request.app[DidResolverAppKey]
    request.app[TaskDispatcherAppKey].spawn(
        "resolve_from_proof", did_resolver.resolve_from_proof, proof
    )
    return web.json_response({"proof_id": proof.id}, status=202)


async def handle_connection_established(request: web.Request):
    event = await read_event(request, ConnectionEstablishedEvent)

    partner = await request.app[PartnerRepositoryAppKey].find_by_id(event.partner_id)
    if partner is None:
        raise json_error(
            web.HTTPNotFound, error="Unknown partner", id=event.partner_id
        )

    scheduled = bool(partner.incoming)
    if scheduled:
        did_resolver = request.app[DidResolverAppKey]
        request.app[TaskDispatcherAppKey].spawn(
            "reconcile_incoming", did_resolver.reconcile_incoming, partner
        )
    else:
        logger.debug("Partner %s is not incoming, skipping", partner.id)
    return web.json_response(
        {"partner_id": partner.id, "scheduled": scheduled}, status=202
    )
