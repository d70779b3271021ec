"""Relay text, images, documents and audio to a generative model over HTTP."""

__version__ = "1.0.0"
