"""
Services Layer
Read-only query and reporting helpers built on the ledger tables.

Services should:
- Not modify ledger state
- Read from multiple data models to aggregate information
- Be stateless (staticmethods)
"""
