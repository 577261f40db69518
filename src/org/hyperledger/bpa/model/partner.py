"""Business partner data models and persistence.

Provides SQLAlchemy models for connection partners and the proofs they
present, plus the repository the resolver uses to read partners and request
in-place updates once a public profile has been resolved.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from sqlalchemy import Boolean, DateTime, Index, String, select, update
from sqlalchemy.dialects.postgresql import JSON
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import Mapped, mapped_column

from org.hyperledger.bpa.model.base import Base, str512, idpk


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Partner(Base):
    """Connection partner with its (possibly unresolved) public profile.

    A partner whose ``verifiable_presentation`` is ``None`` is unresolved.
    Once it is set, resolution leaves the partner alone until the
    presentation is cleared by someone else.
    """

    __tablename__ = "partners"

    id: Mapped[idpk]
    did: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    label: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    verifiable_presentation: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSON(none_as_null=True), nullable=True
    )
    valid: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    incoming: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    __table_args__ = (Index("idx_partners_did", "did"),)


class PartnerProof(Base):
    """Proof received from a partner, with its disclosed attributes."""

    __tablename__ = "partner_proofs"

    id: Mapped[idpk]
    partner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    schema_id: Mapped[Optional[str512]]
    proof: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSON(none_as_null=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    __table_args__ = (Index("idx_partner_proofs_partner_id", "partner_id"),)


def update_verifiable_presentation_stmt(
    partner_id: str,
    verifiable_presentation: Optional[Dict[str, Any]],
    valid: Optional[bool],
    label: Optional[str] = None,
    did: Optional[str] = None,
):
    """Create an update statement storing a resolved presentation.

    The label and DID are only written when both are given, mirroring the
    two shapes the reconciler needs: presentation only, or presentation
    together with a label-derived identity.
    """
    values: Dict[str, Any] = {
        "verifiable_presentation": verifiable_presentation,
        "valid": valid,
        "updated_at": _utcnow(),
    }
    if label is not None and did is not None:
        values["label"] = label
        values["did"] = did
    return update(Partner).where(Partner.id == partner_id).values(**values)


class PartnerRepository:
    """Reads and updates partner records through an async session factory."""

    def __init__(
        self, database_session_maker: async_sessionmaker[AsyncSession]
    ) -> None:
        self.database_session_maker = database_session_maker

    async def find_by_id(self, partner_id: str) -> Optional[Partner]:
        async with self.database_session_maker() as database_session:
            stmt = select(Partner).where(Partner.id == partner_id)
            return (await database_session.scalars(stmt)).first()

    async def find_proof_by_id(self, proof_id: str) -> Optional[PartnerProof]:
        async with self.database_session_maker() as database_session:
            stmt = select(PartnerProof).where(PartnerProof.id == proof_id)
            return (await database_session.scalars(stmt)).first()

    async def update(self, partner: Partner) -> None:
        """Persist every field of a (possibly detached) partner."""
        partner.updated_at = _utcnow()
        async with self.database_session_maker() as database_session:
            async with database_session.begin():
                await database_session.merge(partner)

    async def update_verifiable_presentation(
        self,
        partner_id: str,
        verifiable_presentation: Optional[Dict[str, Any]],
        valid: Optional[bool],
        label: Optional[str] = None,
        did: Optional[str] = None,
    ) -> None:
        stmt = update_verifiable_presentation_stmt(
            partner_id, verifiable_presentation, valid, label=label, did=did
        )
        async with self.database_session_maker() as database_session:
            async with database_session.begin():
                await database_session.execute(stmt)
