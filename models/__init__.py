"""
Models package for the Banker's Algorithm Resource Allocator.
Contains the SystemState value type.
"""
