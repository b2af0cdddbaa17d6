"""Domain services used by HTTP routes and socket handlers.

Keeps persistence and match mechanics separate from transport concerns.
"""
