"""
Payroll Kernel - weekly wage engine infrastructure.

An append-only, auditable payroll core with:
- Typed exceptions with machine-readable codes
- Structured JSON logging
- Idempotent, per-key atomic payroll record upserts
- Immutable adjustments and audit entries
- Tamper-evident audit hash chain
"""

__version__ = "0.1.0"
