"""
Test suite for PhysioCenter.

Contains unit and integration tests for the API and the exercise client.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
