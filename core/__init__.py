"""Core module - configuration, errors, concurrency, security and storage.

Contains the two stateful pieces of the middleware: the bearer credential
cache and the order mapping store. Shopify and HGI specifics belong in
/connectors/.
"""

__version__ = "1.0.0"
