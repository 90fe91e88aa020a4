"""
Analysis package for the Banker's Algorithm Resource Allocator.
Contains trace events, request outcomes and request metrics.
"""
