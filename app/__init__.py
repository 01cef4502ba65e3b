"""Telehealth notification fan-out service."""
