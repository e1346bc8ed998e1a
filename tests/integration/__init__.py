"""
Integration tests for Railguard.

Test components together or against real external services:
- Full pipeline scenarios (checks + retry + schema + timeout) with scripted clients
- Ollama client and pipeline (real calls, marked with @pytest.mark.integration)
"""
