"""
PhysioCenter

A FastAPI-based backend for a physiotherapy clinic, with authentication,
role-based access control, treatment plans and daily exercise follow-up,
plus an async client for the patient exercise workflow.
"""

__version__ = "1.0.0"
