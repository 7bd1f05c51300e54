"""
datacache testing package.

Test organization:
- unit/: per-module tests on a virtual clock
- test_expiration_worker.py: background thread smoke tests on real time
"""
