"""NERBABO notification reconciliation package."""
