"""
Production adapters for the bake timeline engine and repositories.
"""
