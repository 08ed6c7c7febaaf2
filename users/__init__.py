"""Internal user records for validated identities."""
