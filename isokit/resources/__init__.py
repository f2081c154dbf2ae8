"""Texture handles and the resolvers that look them up"""

from .texture import (
    Texture, TextureRegion, TextureResolver,
    StaticTextureResolver, DirectoryTextureResolver,
    texture_key, candidate_keys,
)

__all__ = [
    "Texture",
    "TextureRegion",
    "TextureResolver",
    "StaticTextureResolver",
    "DirectoryTextureResolver",
    "texture_key",
    "candidate_keys",
]
