"""Night-shift attendance accounting engine.

This package is organized by feature modules (attendance, breaks, overtime,
stats, ...) with a thin Flask controller layer over service/gateway layers
that talk to the HR backend through its REST API.
"""
