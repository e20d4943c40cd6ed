"""Assist gateway layer.

Thin routing and caching layer over two external providers:
  - Response Cache (fixed TTL, in memory)
  - Single-slot Scheduler (AI calls never overlap, minimum spacing)
  - Retry Policy (429 backoff, Retry-After, terminal quota errors)
  - Provider Clients (Google Translation, Azure OpenAI chat)
  - Status Broadcaster (fire-and-forget progress events)
"""
