"""
Utilities package for the Banker's Algorithm Resource Allocator.
Contains the scenario loader, presentation helpers and logger.
"""
