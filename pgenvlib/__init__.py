"""
Local PostgreSQL environment management: service control, tenant provisioning, listing and backups.
"""
