"""
Handlers scanned by the end-to-end tests.

Request types and their single handlers, three handlers per notification
type (two concrete, one open generic), and pre/post processors.
"""
