"""
Kernel Layer

Foundational components the engines build on:
- Data models (accounts, knowledge items, governance records)
- Permission Core (role catalog, access decisions)
- Identity adapter (principal, token verification, accounts)
- Activity event log (append-only)

Invariants:
- Role permission sets never change at runtime
- Ownership-scoped permissions apply only to the resource owner
- Multi-step mutations commit or roll back as one transaction
"""
