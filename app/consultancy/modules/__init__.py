"""
Site features: contacts, insights, case studies.

Each module owns its models, service functions, request schemas and blueprint,
and reuses the platform pieces in ``app.consultancy`` (auth, rbac, storage, DB session).
"""
