"""Reconciliation core: ignore rules, hashing, inventories, engine, sync."""
