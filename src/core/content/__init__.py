"""
Landing page image resolution.
"""

from .image_resolver import ImageResolver, extract_page_image, is_usable_image_url, PLACEHOLDER_PATTERNS

__all__ = ['ImageResolver', 'extract_page_image', 'is_usable_image_url', 'PLACEHOLDER_PATTERNS']
