"""Test doubles for Discord objects and the outbound responder."""
