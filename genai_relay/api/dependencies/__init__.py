"""
FastAPI dependencies for request processing.

Dependencies provide the process-wide model manager and upload store to
endpoints, and are the seam tests override with fakes.
"""
