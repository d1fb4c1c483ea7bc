"""
alerts — Emergency accident alert relay.

Sub-modules:
    channels/      — Outbound messaging backends (Twilio WhatsApp / SMS, simulation)
    alert_service  — Request orchestration: validate, dedup, compose, dispatch
    dispatch       — Sequential per-contact delivery with error isolation
    dedup          — Time-windowed fingerprint store for duplicate suppression
    composer       — Message templates
    phone          — Phone number validation / normalisation
    models         — Data structures shared across the system
"""
