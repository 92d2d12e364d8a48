"""
API package containing the HTTP routes.

The ``v1`` subpackage exposes a top-level ``router`` that includes all
domain endpoints; it is mounted under ``/api``.
"""
