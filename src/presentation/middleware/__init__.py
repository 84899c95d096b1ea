"""
Middleware layer for the SchoolSite API.

Cross-cutting request handling: correlation IDs, security headers, request
size limits, request timeouts and rate limiting.
"""
