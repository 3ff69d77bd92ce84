"""Blog/CMS API gateway.

``blog_gateway.main:app`` is the ASGI entry point; ``create_app`` builds a
fresh instance with injectable identity provider, clock and store.
"""

__all__: list[str] = []
