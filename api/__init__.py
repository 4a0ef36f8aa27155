"""
API Package Initialization

Provides the FastAPI application exposing notification triage.
"""
