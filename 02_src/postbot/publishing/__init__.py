"""Publishing module."""

from .wordpress import IContentPublisher, WordPressPublisher

__all__ = ["IContentPublisher", "WordPressPublisher"]
