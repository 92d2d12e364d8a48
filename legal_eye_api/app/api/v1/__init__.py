"""
Version 1 of the Legal Eye API.
"""
