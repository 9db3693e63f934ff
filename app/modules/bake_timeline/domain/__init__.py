"""
Bake timeline domain layer: models, services and repository interfaces.
"""
