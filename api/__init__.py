"""
REST API package.

Run with:
    uvicorn api.main:app --port 5000
"""
