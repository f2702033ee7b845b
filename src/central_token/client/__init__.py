"""Client package for talking to the central instance.

Provides URL validation, the token exchange, and token lifecycle management:
- ``url_guard``: Rejects central instance URLs that resolve to internal addresses
- ``token_exchange``: Trades the local instance access key for an access token
- ``token_manager``: Single-slot token cache with refresh on expiry
"""
