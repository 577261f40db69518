"""
Database Models

This package defines the persistent data structures the partner resolver
reads and updates, using SQLAlchemy's async ORM.

Key Models:
- base.py: Base SQLAlchemy model with common type definitions
- partner.py: Partners, the proofs they presented, and the partner repository
- health.py: Health monitoring gauge

A partner is considered unresolved while its verifiable presentation is
empty. The resolver only ever issues in-place updates on existing partner
rows; partners and proofs are created elsewhere.
"""
