"""
channels — Outbound messaging backends.

Each sender exposes:
    async send(destination, body) → SendResult

Senders never raise for provider failures; they report them in the
SendResult. Pacing and per-contact isolation live in dispatch.
"""
