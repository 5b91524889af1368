"""
Shared helpers: SE3 algebra and error types.
"""
