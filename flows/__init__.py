# ==== PREFECT FLOWS PACKAGE ==== #

"""
Scheduled Prefect flows for the back office.

- document_maintenance_nightly: overdue invoices, quote expiry, low stock
"""

from .document_maintenance_nightly import document_maintenance_nightly

__all__ = ["document_maintenance_nightly"]
