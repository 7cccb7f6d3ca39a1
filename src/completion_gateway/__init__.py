"""
Completion Gateway package.

Provides:
- HTTP gateway forwarding text-generation requests to a hosted completion API
- Streaming relay of upstream completion chunks as a text/event-stream body
"""
