"""
Payroll domain modules.

Each sub-package composes ``payroll_engines`` (pure calculation) with
``payroll_kernel`` services (persistence, audit) behind a service facade.
"""
