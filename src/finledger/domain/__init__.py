"""Domain layer for finledger: entities, balance rules and the ledger store.

Import services from their modules (``finledger.domain.ledger``,
``finledger.domain.mandates``); the database layer imports entities from
this package, so nothing is re-exported here.
"""
