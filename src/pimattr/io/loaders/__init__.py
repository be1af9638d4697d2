from .attribute_loader import load_attributes
from .errors import LoaderError
from .locale_loader import load_locales
from .settings_loader import load_settings

__all__ = ["load_attributes", "load_locales", "load_settings", "LoaderError"]
