"""Operational scripts for the School Clicker service."""
