"""
Invoicing Kernel

Value objects and shared infrastructure for financial document calculation:
- Decimal-only Money paired with an ISO 4217 currency
- Bounded Percentage values for taxes, discounts, deposits and allocations
- Typed exceptions with machine-readable codes
- Structured JSON logging
"""

__version__ = "0.1.0"
