"""Database layer for finledger: the persistence port and its SQLAlchemy adapter."""
