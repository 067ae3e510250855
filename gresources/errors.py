"""Error taxonomy shared by path validation, the resource store and the request layer."""


class ResourceError(Exception):
    """Base class for all GResources errors."""

    status_code = 500


class ValidationError(ResourceError):
    """Bad path or content supplied by the client."""

    status_code = 400


class ResourceConflict(ResourceError):
    """A resource already exists at the requested path."""

    status_code = 409


class ResourceNotFound(ResourceError):
    """Neither a resource nor a folder exists at the requested path."""

    status_code = 404


class InvalidFolderDeletion(ResourceError):
    """Attempt to delete a folder that still has descendant resources."""

    status_code = 400


class StoreError(ResourceError):
    """The underlying persistence layer failed."""

    status_code = 500
