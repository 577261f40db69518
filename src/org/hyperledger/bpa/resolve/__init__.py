"""
Partner Identity Resolution

This package resolves the public DID and verifiable profile of connection
partners whose public identity is not known when the connection is made.

Key Components:
- did_resolver.py: The two resolution entry points (proof- and connection-triggered)
- lookup.py: Profile lookup behind a DID's ``profile`` service endpoint
- did_document.py: DID document retrieval through a universal resolver
- label.py: Extraction of a DID embedded in a connection label
- schema.py: Schema name extraction from schema identifiers
- errors.py: Lookup error types
- __main__.py: CLI interface for profile lookups

Resolution order for an incoming connection:
1. Resolve the partner's DID directly
2. Failing that, resolve a DID embedded in the label (``did:sov:xxx:MyLabel``)
3. Store the profile and announce the partner with a ``partner-added`` event

A proof from a commercial register credential discloses the partner's public
DID; if the partner's current DID is not public, that DID is resolved instead.
"""
