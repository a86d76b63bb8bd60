"""
Serving Module

FastAPI routers, dependencies and middleware for the dashboard API.
"""
