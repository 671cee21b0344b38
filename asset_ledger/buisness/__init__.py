"""
Business layer for the asset & stock ledger.
Managers here own every invariant: upserts, movements, installation edges.
Data models under asset_ledger.data carry persistence shape only.
"""
