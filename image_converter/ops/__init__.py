"""Use-case / operations layer.

High-level actions invoked by the host UI: running a conversion batch,
regenerating retained inputs with new settings, and clearing the session.
"""
