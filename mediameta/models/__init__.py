from mediameta.models.media import ImageLocationKind, ImageRole, MediaKind, MediaSource

__all__ = ["ImageLocationKind", "ImageRole", "MediaKind", "MediaSource"]
