"""
Infrastructure Layer
====================

Adapters for everything outside the ThermaCore process: durable key-value
storage, the remote unit data service and append-only audit logging.
"""
