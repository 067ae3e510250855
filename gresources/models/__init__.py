from gresources.models.resource import FolderView, Resource

__all__ = ["Resource", "FolderView"]
