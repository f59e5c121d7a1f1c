"""Expiring URL shortener service."""
