"""
Shared infrastructure: base models, errors, logging, middleware,
authentication and permission classes.
"""
