"""SheMarket — marketplace domain service (listings, orders, direct messages).

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
