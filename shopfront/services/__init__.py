"""
Business logic lives here; routers only translate HTTP to service calls.
Services raise shopfront.errors types and never build HTTP responses.
"""
