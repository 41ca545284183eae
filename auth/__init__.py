"""auth/ -- Authentication and authorization package for Gatehouse.

Layer rule: auth/ imports only stdlib + third-party libraries + core/.
It does NOT import from api/ or client/.
api/ imports from auth/, not the other way around. Only dependencies.py may
import fastapi; tokens.py, gates.py and service.py stay framework-free.
"""
