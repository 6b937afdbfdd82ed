"""
Pytest test suite for the NFD vault batch sender.

Test categories:
- Unit tests: each pipeline stage with mocked NFD API / algod
- Integration tests: the full pipeline and CLI with both sides mocked
"""
