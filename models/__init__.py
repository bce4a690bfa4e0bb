"""
Models package for the Banker's Allocator.
Contains the allocator state, decision types and exceptions.
"""
