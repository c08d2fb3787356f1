# =======================================================================================
# keycustody/__init__.py - Package Initialization
# =======================================================================================
"""
Key Custody Tracker

Scan an identity barcode and a key-tag barcode to sign physical keys in or out,
with a live dashboard of key custody and an append-only activity log.
"""

__version__ = "1.0.0"
__author__ = "Key Custody Team"
