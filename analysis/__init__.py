"""
Analysis package for the Banker's Allocator.
Contains the event log and run metrics used by the simulator.
"""
