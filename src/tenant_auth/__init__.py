"""Tenant auth token exchange.

Obtains service-account tokens from the tenant auth service, exchanges them
for cluster-scoped tokens and resolves the cluster a user is assigned to.
"""

__version__ = "0.1.0"
