"""Infrastructure Layer — database sessions, blob storage, hashing, logging.

Invariants:
    - Infrastructure never imports from services/ or api/
    - Store failures and timeouts surface as StoreUnavailableError
"""
