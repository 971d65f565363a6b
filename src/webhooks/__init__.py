"""Webhook inbound system for MaintainX work-order events.

Each webhook is signature-verified (HMAC + replay window), acknowledged
immediately, and processed detached: priority -> due date -> PATCH back.
"""
