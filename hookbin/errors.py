"""Project-level exception hierarchy."""


class HookbinError(Exception):
    """Base for all hookbin exceptions."""


class ConfigError(HookbinError):
    """Configuration could not be loaded or is invalid."""


class RegistryError(HookbinError):
    """Hook registry operation failed."""


class InvalidHookNameError(RegistryError):
    """Hook name is empty or contains invalid characters."""


class HookExistsError(RegistryError):
    """A hook with that name already exists."""


class HookNotFoundError(RegistryError):
    """Hook does not exist."""


class StoreUnavailableError(RegistryError):
    """Key-value store transaction failed."""


class IngestError(HookbinError):
    """Webhook delivery could not be captured."""


class SinkCreateError(IngestError):
    """Sink artifact could not be created."""


class BodyCopyError(IngestError):
    """Request body copy into the sink failed."""
