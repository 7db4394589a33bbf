"""Error taxonomy shared by the stores, the service and the API layer."""


class TreeError(Exception):
    """Base class for every expected failure of a sitemap operation."""

    pass


class NotFoundError(TreeError):
    """A module, node or referenced slug does not exist."""

    pass


class MissingModuleError(NotFoundError):
    """The module directory does not exist."""

    def __init__(self, module: str) -> None:
        self.module = module
        super().__init__(f"Module not found: {module}")


class NodeNotFoundError(NotFoundError):
    """A page or subpage directory does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Node not found: {path}")


class UnknownSlugError(NotFoundError):
    """An ordering request referenced a slug with no directory behind it."""

    def __init__(self, slug: str) -> None:
        self.slug = slug
        super().__init__(f"Unknown slug in order: {slug}")


class InvalidInputError(TreeError):
    """Empty slug, slug containing a separator, bad node path or malformed patch."""

    pass


class AlreadyExistsError(TreeError):
    """Create or rename target collides with an existing sibling."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Already exists: {path}")


class IOFailureError(TreeError):
    """An underlying storage operation failed."""

    def __init__(self, operation: str, path: str, cause: OSError | None = None) -> None:
        self.operation = operation
        self.path = path
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"{operation} failed for {path}{detail}")
