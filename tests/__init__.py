"""
Tests Package - Unit Tests for the Watcher

Test structure:
- tests/conftest.py - shared fixtures (fake fetcher, fake timer, clocks)
- tests/test_*.py   - one module per component

Async code is driven with asyncio.run(); HTTP is mocked with httpx.MockTransport.
"""
