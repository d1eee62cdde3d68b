"""
wfarchive: archival store for completed workflow executions.

Persists terminal workflows with a label index for selector search,
scoped per cluster, managed namespace and owning controller instance.
"""

__version__ = "0.1.0"
