"""
Unit tests for the event and internal request handlers in
org.hyperledger.bpa.app.handlers
"""

import json
from unittest.mock import AsyncMock, Mock
import pytest
from aiohttp import web

from org.hyperledger.bpa.app.config import (
    DidResolverAppKey,
    HealthGaugeAppKey,
    PartnerLookupAppKey,
    PartnerRepositoryAppKey,
    TaskDispatcherAppKey,
)
from org.hyperledger.bpa.app.handlers.events import (
    handle_connection_established,
    handle_proof_received,
)
from org.hyperledger.bpa.app.handlers.internal import (
    handle_internal_lookup,
    handle_internal_ready,
)
from org.hyperledger.bpa.app.tasks import TaskDispatcher
from org.hyperledger.bpa.model.health import HealthGauge
from org.hyperledger.bpa.resolve.errors import PartnerLookupError
from tests.test_helpers import make_partner, make_profile, make_proof


@pytest.fixture
def task_dispatcher():
    return Mock(spec=TaskDispatcher)


@pytest.fixture
def app(partner_repository, partner_lookup, did_resolver, task_dispatcher):
    return {
        PartnerRepositoryAppKey: partner_repository,
        PartnerLookupAppKey: partner_lookup,
        DidResolverAppKey: did_resolver,
        TaskDispatcherAppKey: task_dispatcher,
        HealthGaugeAppKey: HealthGauge(health_threshold=1),
    }


def make_request(app, body=None, query=None):
    request = Mock(spec=web.Request)
    request.app = app
    request.query = query or {}
    if isinstance(body, Exception):
        request.json = AsyncMock(side_effect=body)
    else:
        request.json = AsyncMock(return_value=body)
    return request


class TestProofReceived:
    async def test_schedules_resolution(self, app, partner_repository, did_resolver, task_dispatcher):
        proof = make_proof("p1")
        partner_repository.find_proof_by_id.return_value = proof

        response = await handle_proof_received(
            make_request(app, {"proof_id": proof.id})
        )

        assert response.status == 202
        task_dispatcher.spawn.assert_called_once_with(
            "resolve_from_proof", did_resolver.resolve_from_proof, proof
        )

    async def test_unknown_proof(self, app, task_dispatcher):
        with pytest.raises(web.HTTPNotFound):
            await handle_proof_received(make_request(app, {"proof_id": "missing"}))
        task_dispatcher.spawn.assert_not_called()

    @pytest.mark.parametrize(
        "body", [{}, {"proof": "x"}, ValueError("no json")]
    )
    async def test_invalid_event(self, app, body):
        with pytest.raises(web.HTTPBadRequest):
            await handle_proof_received(make_request(app, body))


class TestConnectionEstablished:
    async def test_schedules_reconciliation(
        self, app, partner_repository, did_resolver, task_dispatcher
    ):
        partner = make_partner(incoming=True)
        partner_repository.find_by_id.return_value = partner

        response = await handle_connection_established(
            make_request(app, {"partner_id": partner.id})
        )

        assert response.status == 202
        assert json.loads(response.body)["scheduled"] is True
        task_dispatcher.spawn.assert_called_once_with(
            "reconcile_incoming", did_resolver.reconcile_incoming, partner
        )

    async def test_outgoing_connection_is_skipped(
        self, app, partner_repository, task_dispatcher
    ):
        partner = make_partner(incoming=False)
        partner_repository.find_by_id.return_value = partner

        response = await handle_connection_established(
            make_request(app, {"partner_id": partner.id})
        )

        assert json.loads(response.body)["scheduled"] is False
        task_dispatcher.spawn.assert_not_called()

    async def test_unknown_partner(self, app):
        with pytest.raises(web.HTTPNotFound):
            await handle_connection_established(
                make_request(app, {"partner_id": "missing"})
            )


class TestInternal:
    async def test_ready(self, app):
        response = await handle_internal_ready(make_request(app))
        assert response.status == 200

        await app[HealthGaugeAppKey].record_failure(2)
        response = await handle_internal_ready(make_request(app))
        assert response.status == 503

    async def test_lookup(self, app, partner_lookup):
        partner_lookup.lookup_partner.return_value = make_profile("did:sov:abc")

        response = await handle_internal_lookup(
            make_request(app, query={"did": "did:sov:abc"})
        )

        assert json.loads(response.body)["did"] == "did:sov:abc"
        partner_lookup.lookup_partner.assert_awaited_once_with("did:sov:abc")

    async def test_lookup_from_label(self, app, partner_lookup):
        partner_lookup.lookup_partner.return_value = make_profile("did:sov:abc")

        await handle_internal_lookup(
            make_request(app, query={"did": "did:sov:abc:Acme"})
        )

        partner_lookup.lookup_partner.assert_awaited_once_with("did:sov:abc")

    async def test_lookup_not_found(self, app, partner_lookup):
        partner_lookup.lookup_partner.side_effect = PartnerLookupError("nope")

        with pytest.raises(web.HTTPNotFound):
            await handle_internal_lookup(make_request(app, query={"did": "did:sov:abc"}))

    async def test_lookup_missing_parameter(self, app):
        with pytest.raises(web.HTTPBadRequest):
            await handle_internal_lookup(make_request(app))
