"""
API Layer

RESPONSIBILITY: HTTP read model and intent endpoints
ALLOWED INPUTS: JSON request bodies
OUTPUTS: JSON projections of the in-memory State

WHAT THIS LAYER MUST NOT DO:
============================
- Apply business rules (the Regulator does)
- Accept a document without the migration pipeline
- Persist State
"""
