"""
Storage layer - registry transport, Harbor catalog client and local blob cache.
"""
