"""
Core infrastructure: configuration, database access, security,
logging and the response envelope shared by all endpoints.
"""
