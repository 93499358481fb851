"""Operator scripts (tenant administration, migrations)."""
