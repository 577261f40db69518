from typing import List
import argparse
import aiohttp
import asyncio
import logging

from org.hyperledger.bpa.resolve.did_document import DidDocumentClient
from org.hyperledger.bpa.resolve.errors import PartnerLookupError
from org.hyperledger.bpa.resolve.label import split_label
from org.hyperledger.bpa.resolve.lookup import PartnerLookup

logger = logging.getLogger(__name__)


async def resolve_subjects(partner_lookup: PartnerLookup, subjects: List[str]) -> None:
    """Look up each subject, reading a DID out of connection labels first."""
    for subject in subjects:
        did = split_label(subject).did or subject
        try:
            profile = await partner_lookup.lookup_partner(did)
            print(f"resolved_profile {profile.model_dump_json()}")
        except PartnerLookupError as e:
            print(f"unresolved {did}: {e}")
        except Exception:
            logging.exception("Exception resolving subject %s", subject)


async def realMain() -> None:
    parser = argparse.ArgumentParser(
        prog="resolve", description="Resolve partner profiles"
    )
    parser.add_argument(
        "subject", nargs="+", help="The DID(s) or connection label(s) to resolve."
    )
    parser.add_argument(
        "--resolver-url",
        default="https://resolver.dev.greenlight.bcovrin.vonx.io",
        help="The universal resolver used to fetch DID documents.",
    )

    args = vars(parser.parse_args())

    subjects: List[str] = args.get("subject", [])

    async with aiohttp.ClientSession() as session:
        partner_lookup = PartnerLookup(
            session, DidDocumentClient(session, args.get("resolver_url"))
        )
        await resolve_subjects(partner_lookup, subjects)


def main() -> None:
    asyncio.run(realMain())


if __name__ == "__main__":
    main()
