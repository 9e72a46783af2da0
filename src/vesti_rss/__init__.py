"""vesti-rss: the vesti.ru news API as a streamed RSS 2.0 feed."""

__version__ = "0.1.0"

USER_AGENT = f"vesti-rss/{__version__}"

__all__ = ["USER_AGENT", "__version__"]
