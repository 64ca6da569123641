"""
Module: drawer_kernel.db.types
Responsibility: Annotated type aliases for money and short code columns so
    every model uses identical column definitions.
Architecture position: Kernel > DB.  Imported by models/ only.

Invariants enforced:
    CRITICAL: No floats anywhere in the drawer kernel.  Money columns are
    Numeric(38, 9) and map to Decimal.
"""

from decimal import Decimal
from typing import Annotated

from sqlalchemy import Numeric, String

# 38 digits total, 9 decimal places
Money = Annotated[Decimal, Numeric(38, 9)]

# ISO 4217 currency code
Currency = Annotated[str, String(3)]
