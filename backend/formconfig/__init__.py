"""
Form configuration service.

Versioned, declarative data-entry form schemas: a draft/publish/rollback
lifecycle for the schema and an interpretation engine that turns the schema
into validated, conditionally visible input controls.
"""
__version__ = "0.1.0"
