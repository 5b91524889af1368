"""
Message types: goals, frames, constraints and markers.
"""
