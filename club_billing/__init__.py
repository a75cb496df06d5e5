"""
Club Billing - Source Package

Monthly wage statements for the trainers of a sports club, built from
logged training sessions and the corrections made to them.

DESIGN PRINCIPLES:
1. The engine is pure: same inputs -> same ledger
2. Corrections are additive: nothing billed is ever rewritten
3. Fail per entry, not per batch
4. Every step of a statement run is auditable
5. Data store, calendar and document service are swappable
"""

__version__ = "1.0.0"
__author__ = "Club Billing Team"
