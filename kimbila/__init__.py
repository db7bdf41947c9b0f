"""
Kimbila - Source Package

Bookkeeping for a one-person shop: a product catalog, the sales made
from it, and what customers owe on credit.

DESIGN PRINCIPLES:
1. One place enforces the rules (LedgerService)
2. Fail early, fail visibly
3. No silent corrections
4. History never changes: a sale keeps the prices it was made at
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Kimbila Team"
