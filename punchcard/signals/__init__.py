"""
Punchcard signals - public event API.

Emitted signals:
- customer_registered: Emitted by services.customer.register()
- points_changed: Emitted by services.customer accrue/redeem/set_points
- scan_committed: Emitted by ScanValidator after a committed scan
- tenant_restored: Emitted by services.backup.import_tenant()
"""

from django.dispatch import Signal

# Ledger signals (emitted by services)
customer_registered = Signal()  # sender=Customer, tenant=str, customer=Customer
points_changed = Signal()  # sender=Customer, tenant=str, customer=Customer, operation=str

# Scan signals
scan_committed = Signal()  # sender=ScanValidator, tenant=str, customer=Customer, token=str

# Backup signals
tenant_restored = Signal()  # sender=None, tenant=str
