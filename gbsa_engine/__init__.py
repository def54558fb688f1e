"""Tile-and-sprite game engine core: sound registers, tracker music, camera, dialogue text, video and actors."""

__version__ = "0.1.0"

__all__ = ["sound", "channels", "tracker", "camera", "text", "video", "actors"]