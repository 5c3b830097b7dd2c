"""Audit infrastructure components.

This package provides the change audit logger used to trace corrections
and deletions made during a cleaning run.
"""

from pressure_sieve.infrastructure.audit.change_audit_logger import ChangeAuditLogger

__all__ = ['ChangeAuditLogger']
