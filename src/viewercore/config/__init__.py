from .models import (
    DataSourceConfig,
    ExtensionRef,
    LoggingConfig,
    ModeRef,
    ViewerConfig,
    import_object,
)

__all__ = [
    "DataSourceConfig",
    "ExtensionRef",
    "LoggingConfig",
    "ModeRef",
    "ViewerConfig",
    "import_object",
]
