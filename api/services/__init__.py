"""
API Services Layer.

Database and collaborator calls behind the route handlers.
"""
