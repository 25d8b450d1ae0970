"""
Static pages and HTTP hardening for the donation site.
"""
