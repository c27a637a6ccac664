"""Roles and role checks for the web layer."""
