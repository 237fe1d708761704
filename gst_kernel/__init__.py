"""
GST Kernel

Shared foundation for the GST invoicing library:
- Typed exceptions with machine-readable codes
- Structured JSON logging
- Immutable value objects (Money, Currency, Gstin)
- Invoice persistence with finalized-invoice immutability
"""

__version__ = "0.1.0"
