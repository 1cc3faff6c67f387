"""
Google — Sheets contact lookup, Drive/Docs storage and the agent sync log.

Every client takes pre-built services in its constructor so tests can
inject fakes; in production the services are built lazily from the OAuth2
refresh-token credentials in :mod:`liam_relay.google.credentials`.
"""
