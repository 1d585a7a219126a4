"""
Importable handler modules scanned by the discovery and end-to-end tests.
"""
