"""
HTTP presentation layer for the bake timeline module.
"""
