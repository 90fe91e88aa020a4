"""
Algorithms package for the Banker's Algorithm Resource Allocator.
Contains vector algebra and the avoidance (safety check + request) implementation.
"""
