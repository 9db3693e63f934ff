"""
Bake timeline API package.
"""
