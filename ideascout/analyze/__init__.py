"""Trend analysis over clustered items: correlation records and velocity."""
