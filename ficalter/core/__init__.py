"""Shared infrastructure for the ficalter service."""
