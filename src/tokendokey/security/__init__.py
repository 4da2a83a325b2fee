"""Security module: credential storage, mTLS and token flows.

Note: Shared exceptions are defined in tokendokey.exceptions
"""
