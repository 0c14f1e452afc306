"""
In-memory application state and the derivation rules shared by the API.

Everything in this package is plain Python: no ORM, no request objects.
"""
