"""
FastAPI application layer for genai-relay.

This module provides HTTP endpoints that forward text, images, documents and
audio to a generative model and relay its text response.
"""
