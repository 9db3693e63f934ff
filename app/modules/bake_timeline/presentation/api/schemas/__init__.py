"""
Request and response schemas for the bake timeline API.
"""
