"""
Utilities package for the Banker's Allocator.
Contains the scenario loader and the simulator logger.
"""
