"""
Unit tests for Railguard.

Test individual components in isolation:
- Retry policy (schedule, jitter, backoff cancellation) and classifier
- Structural descriptor (syntax, unknown fields, types, decode_into)
- Check contract and function adapter
- Generation clients (Ollama adapter against httpx.MockTransport)
- Run configuration, builder and pipeline orchestration
- Exceptions, settings and logging configuration
"""
