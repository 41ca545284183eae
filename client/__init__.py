"""client/ -- Python client for the Gatehouse API.

session.py holds the caller's token and cached user; api.py wraps each
endpoint. Logging out is purely local: the token is dropped and nothing
on the server changes.

Layer rule: client/ imports only stdlib + third-party libraries. It talks to
the server over HTTP and does NOT import from api/, auth/ or core/.
"""
