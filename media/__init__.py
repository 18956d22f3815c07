"""
Media package: cover thumbnail cache.
"""
