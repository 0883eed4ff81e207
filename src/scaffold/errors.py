"""Exception hierarchy for scaffold."""


class ScaffoldError(Exception):
    """Base exception for all scaffold errors."""
    pass


# --- Lookup failures ---
class NotFoundError(ScaffoldError):
    """A name, ID or path does not resolve to a known build container."""
    pass


class ContainerUnknownError(NotFoundError):
    """The store has no container with the given name or ID."""
    pass


class ImageUnknownError(NotFoundError):
    """The store has no image with the given name or ID."""
    pass


class NotBuildContainerError(NotFoundError):
    """The container exists but carries no build state."""
    pass


# --- Persisted state ---
class DecodeError(ScaffoldError):
    """Persisted build state is malformed."""
    pass


class TypeMismatchError(ScaffoldError):
    """Decoded state was not written by scaffold."""
    pass


# --- Store ---
class StoreOperationError(ScaffoldError):
    """A store operation (allocate, mount, pull, lookup) failed."""
    pass


class DuplicateNameError(StoreOperationError):
    """A container name is already in use."""
    pass


# --- Configuration updates ---
class TokenizeError(ScaffoldError):
    """A shell-like string could not be split into words."""
    pass


# --- Configuration ---
class ConfigParsingError(ScaffoldError):
    """A configuration file is not a valid YAML mapping."""
    pass
