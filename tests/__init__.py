"""
Tests for the Shoppy backend

Cart engine, persistence, order counters and catalog client are exercised with
in-memory fakes for the external services (Firebase RTDB, fakestore API).
"""
