"""
Task resource: storage, business logic and the v1 HTTP transport.
"""
