"""auth/ -- Authentication and authorization package for UserDesk.

Layer rule: auth/ imports only stdlib + third-party libraries, plus
core.config for Settings (type-only in most modules).
It does NOT import from api/.
api/ imports from auth/, not the other way around.
"""
