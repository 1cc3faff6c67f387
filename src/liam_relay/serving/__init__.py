"""
Serving — FastAPI application, request authentication and the uvicorn
entry point for the Liam relay.
"""
