"""
Partner Resolver Application Layer

This package runs the resolver as an aiohttp service. The agent reports
received proofs and newly established connections to the event endpoints;
each event is turned into a detached resolution task.

Key Components:
- cli.py: Entry point, logging setup
- server.py: Web application, startup/shutdown of shared resources, middleware
- config.py: Pydantic settings and AppKeys
- handlers/: Request handlers for events and internal endpoints
- tasks.py: Detached task dispatch and health monitoring
- metrics.py: Metrics client abstraction

Endpoints:
- /internal/alive, /internal/ready
- /internal/api/lookup
- /internal/api/events/proof, /internal/api/events/connection
"""
