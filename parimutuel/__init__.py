"""Pari-mutuel pool ledger.

Accounting and authorization engine for two-sided betting pools:

- records: pool and bet record stores (keyed, atomic read-modify-write)
- escrow: tracked per-pool escrow balance and value movement
- fees: fixed-percentage fee model
- resolution: owner-authorized resolution and fee disbursement
- payout: pari-mutuel entitlement and single-claim handling
- events: observational notifications and sinks
- persistence: collaborator boundary (protocols)
- storage: in-memory and SQL record store implementations

`parimutuel.ledger.BettingPoolLedger` ties these together into the public
operation set.
"""
