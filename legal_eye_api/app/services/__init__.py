"""
Service layer.

Each service class encapsulates the business logic of one domain as
async classmethods taking the :class:`~..core.db.Database` facade as
their first argument.  Services raise :mod:`..core.errors` exceptions;
HTTP concerns stay in the endpoints.
"""
