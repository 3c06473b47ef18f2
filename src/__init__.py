"""
Magrathea NTS API Provisioning Client

An implementation of the Magrathea NTS API line protocol for redirecting and
deactivating non-geographic numbers.
"""

__version__ = "1.0.0"
__description__ = "Magrathea NTS API client for non-geographic number provisioning"
