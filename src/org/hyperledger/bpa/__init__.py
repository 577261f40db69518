"""
BPA - Business Partner Agent DID Resolver

This module resolves the public identity of business partners that connect to
the agent without presenting a public DID. It runs next to the agent as a
small aiohttp service fed with proof and connection events.

Key Components:
- app: Web application layer, configuration, background task dispatch
- model: Partner and proof persistence
- resolve: DID, label and profile resolution
- notify: Partner event publication

Resolution Flow:
1. A commercial register proof arrives, or an incoming connection is made
2. The event is acknowledged and a resolution task is scheduled
3. The task looks up the partner's public profile through its DID document
4. On success the partner record is updated; incoming partners are announced

Resolution is best effort. Failures are logged and the partner stays
unresolved until the next event gives it another try.
"""
