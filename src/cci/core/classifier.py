"""
Content type registry for mapping file extensions to semantic categories.
"""

import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

# Default path to the content types configuration file
_DEFAULT_CONTENT_TYPES_CONFIG = Path(__file__).parent / "content_types.yaml"

# Category for files whose extension is not registered
GENERIC_FILE_TYPE = "file"


def _normalize_extension(extension: str) -> str:
    ext = extension.strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


class ContentTypeRegistry:
    """
    Registry mapping file extensions to content categories
    (video, audio, document, ebook, image, code, archive).

    Lookups are case-insensitive and accept extensions with or without
    the leading dot. Unknown extensions map to 'file'.

    Example:
        >>> registry = ContentTypeRegistry()
        >>> registry.classify(".MP4")
        'video'
        >>> registry.register("subtitle", [".srt", ".vtt"]).classify("srt")
        'subtitle'
    """

    def __init__(self, load_defaults: bool = True):
        """
        Initialize the registry.

        Args:
            load_defaults: If True, load default mappings from content_types.yaml.
        """
        self._extension_to_category: dict[str, str] = {}
        self._category_to_extensions: dict[str, set[str]] = {}

        if load_defaults:
            self._load_from_yaml(_DEFAULT_CONTENT_TYPES_CONFIG)

    @classmethod
    def from_yaml(cls, config_path: Path | str) -> "ContentTypeRegistry":
        """
        Create a registry from a YAML file of ``category: [extensions]``.

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ValueError: If the config file format is invalid
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Content types config not found: {config_path}")
        registry = cls(load_defaults=False)
        registry._load_from_yaml(config_path)
        return registry

    def _load_from_yaml(self, config_path: Path) -> None:
        if not config_path.exists():
            logger.warning(f"Content types config not found: {config_path}, using empty registry")
            return

        try:
            data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse content types config: {e}")
            raise ValueError(f"Invalid YAML in content types config: {e}") from e

        if data is None:
            return
        if not isinstance(data, dict):
            raise ValueError(
                f"Invalid content types config format: expected dict, got {type(data)}"
            )

        for category, extensions in data.items():
            if not isinstance(extensions, list):
                logger.warning(
                    f"Invalid extensions for {category}: expected list, got {type(extensions)}"
                )
                continue
            self.register(str(category), [str(ext) for ext in extensions])

    def register(self, category: str, extensions: list[str]) -> "ContentTypeRegistry":
        """Register extensions for a category. Returns self for chaining."""
        for extension in extensions:
            ext = _normalize_extension(extension)
            if not ext:
                continue
            previous = self._extension_to_category.get(ext)
            if previous is not None and previous != category:
                self._category_to_extensions[previous].discard(ext)
            self._extension_to_category[ext] = category
            self._category_to_extensions.setdefault(category, set()).add(ext)
        return self

    def classify(self, extension: str) -> str:
        """Return the category for an extension, 'file' when unknown."""
        return self._extension_to_category.get(
            _normalize_extension(extension), GENERIC_FILE_TYPE
        )

    def classify_path(self, file_path: Path) -> str:
        return self.classify(Path(file_path).suffix)

    def extensions_for(self, category: str) -> set[str]:
        return self._category_to_extensions.get(category, set()).copy()

    def categories(self) -> set[str]:
        return set(self._category_to_extensions.keys())


# Global default registry instance
_default_registry = ContentTypeRegistry()


def get_default_registry() -> ContentTypeRegistry:
    """Get the global default content type registry."""
    return _default_registry


def classify(extension: str) -> str:
    """Classify an extension with the default registry."""
    return _default_registry.classify(extension)
