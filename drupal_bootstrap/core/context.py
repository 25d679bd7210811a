"""Per-run context shared by the install and compile tasks."""

from __future__ import annotations

import logging
from typing import Any

from ..preprocessors import PREPROCESSORS, NullPreprocessor, Preprocessor
from ..resolver.bower import BowerResolver
from .config import ConfigStore
from .errors import ConfigurationError
from .settings import RunOptions

logger = logging.getLogger(__name__)

INVALID_PREPROCESSOR = (
    "Your theme's package.json file must contain a valid "
    "`drupal-bootstrap.preprocessor` type; either `less` or `sass`."
)


class BuildContext:
    """Configuration, resolver and preprocessors for a single run.

    Use it as a context manager so the configuration is written back to
    package.json when the task finishes, whether or not it succeeded.
    """

    def __init__(self, options: RunOptions, overrides: dict[str, Any] | None = None):
        self.options = options
        self.root = options.root
        self.config = ConfigStore.load(self.root, overrides)

        self._preprocessors: dict[str, Preprocessor] = {}
        self.preprocessor: Preprocessor = NullPreprocessor(self.root, color=options.color)
        self.preprocessor = self.get_preprocessor(self.config.get("preprocessor"))

        self.resolver = BowerResolver.from_config(
            self.config, self.root, verbose=options.verbose or options.debug
        )

    @property
    def force(self) -> bool:
        return self.options.force

    def get_preprocessor(self, name: str | None = None) -> Preprocessor:
        """Return the cached preprocessor instance for ``name``.

        Without a name the active preprocessor is returned.
        """
        if not name:
            return self.preprocessor
        preprocessor_type = PREPROCESSORS.get(name)
        if preprocessor_type is None:
            raise ConfigurationError(INVALID_PREPROCESSOR)
        if name not in self._preprocessors:
            self._preprocessors[name] = preprocessor_type(self.root, color=self.options.color)
        return self._preprocessors[name]

    def shutdown(self) -> bool:
        """Write changed configuration back, except in test mode."""
        if self.options.is_test:
            return False
        return self.config.flush()

    def __enter__(self) -> BuildContext:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()
