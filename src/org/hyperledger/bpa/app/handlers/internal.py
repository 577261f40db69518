import json
import logging
from aiohttp import web

from org.hyperledger.bpa.app.config import HealthGaugeAppKey, PartnerLookupAppKey
from org.hyperledger.bpa.resolve.errors import PartnerLookupError
from org.hyperledger.bpa.resolve.label import split_label

logger = logging.getLogger(__name__)


async def handle_internal_ready(request: web.Request):
    health_gauge = request.app[HealthGaugeAppKey]
    if await health_gauge.is_healthy():
        return web.Response(status=200)
    return web.Response(status=503)


async def handle_internal_alive(request: web.Request):
    return web.Response(status=200)


async def handle_internal_lookup(request: web.Request):
    """Look up the public profile behind a DID or a DID-carrying label."""
    subject = request.query.get("did", "").strip()
    if len(subject) == 0:
        raise web.HTTPBadRequest(
            body=json.dumps({"error": "Missing did parameter"}),
            content_type="application/json",
        )

    did = split_label(subject).did or subject
    try:
        profile = await request.app[PartnerLookupAppKey].lookup_partner(did)
    except PartnerLookupError as e:
        logger.debug("Lookup of %s failed: %s", did, e)
        raise web.HTTPNotFound(
            body=json.dumps({"error": "Not Found", "did": did}),
            content_type="application/json",
        )
    return web.json_response(profile.model_dump(mode="json"))
