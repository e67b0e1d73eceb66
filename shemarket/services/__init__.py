"""Service Layer — the imperative shell around core/ rules.

Invariants:
    - Every mutating operation validates role/ownership before writing
    - Status transitions are conditional writes on the observed status
    - Services talk to the store only through infrastructure.database.BoundedStore
"""
