"""
Email package.

Modules:
- client: EmailClient for sending templated emails via the Communications Service API
- lessons: lesson assignment / credential notifications built from scheduling results
"""
