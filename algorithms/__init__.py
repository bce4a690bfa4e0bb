"""
Algorithms package for the Banker's Allocator.
Contains the safety check, request handling (Banker's Algorithm) and release operations.
"""
