"""Reconciliation features."""
