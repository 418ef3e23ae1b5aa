"""
Content loaders (transports) and the resolver that tries them in order.

Defines the ContentLoader protocol plus the HTTP (primary) and static-root
(fallback) implementations.
"""
