"""Session Admission Engine package.

Organized by feature modules (sessions, tokens, attendance) with a thin Flask
controller layer on top of the service/repository layers.
"""
