from typing import Optional


class PartnerLookupError(Exception):
    """A partner profile could not be resolved for a DID.

    Raised for transport failures, missing DID documents or profile
    endpoints, and malformed responses.
    """

    def __init__(self, message: str, did: Optional[str] = None) -> None:
        super().__init__(message)
        self.did = did


class DidNotResolvableError(PartnerLookupError):
    """The DID is not publicly resolvable."""
