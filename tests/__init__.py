"""Test package for the Vault Exporter application.

Covers the system components:
- Tag decomposition and query parsing
- Document selection and link closure
- Note parsing and the filesystem vault
- Copying exports and persisted settings
- Command line interface
"""
