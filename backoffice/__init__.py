"""Multi-tenant back office API: quotes, invoices, purchasing, inventory and timesheets."""

__version__ = "0.1.0"
