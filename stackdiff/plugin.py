"""
Diff plugin: drives one diff run for a service.

Resolves the active backend, loads its spec provider, reads the compiled
template and hands both to the provider. Every failure reaches the host as a
``StackDiffError``.
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Literal, Optional

from .config import build_config, merge_config
from .exceptions import (
    DiffFailedError,
    ProviderLoadError,
    ProviderNotFoundError,
    StackDiffError,
    TemplateNotFoundError,
)
from .providers import ProviderRegistry, SpecProvider
from .service import Service


logger = logging.getLogger(__name__)

RunStatus = Literal["uninitialized", "loaded", "diffed", "failed"]


class DiffPlugin:
    """
    Compares the compiled template of a service with its deployed stack.

    Lifecycle: ``load()`` once, then ``diff()``. Naming is resolved at
    construction so an unknown backend fails before any I/O.
    """

    def __init__(
        self,
        service: Service,
        log: Optional[logging.Logger] = None,
        registry: Optional[ProviderRegistry] = None,
        config_overrides: Optional[Dict[str, Any]] = None
    ):
        """
        Args:
            service: Loaded service definition (host collaborator)
            log: Logger for progress messages; defaults to this module's logger
            registry: Spec provider registry; a fresh one when omitted
            config_overrides: Command-line values layered over ``custom.diff``

        Raises:
            ProviderNotFoundError: If the service's backend has no registration
        """
        self.service = service
        self.log = log or logger
        self.registry = registry or ProviderRegistry()
        self.config_overrides = config_overrides or {}
        self.status: RunStatus = "uninitialized"
        self._spec_provider: Optional[SpecProvider] = None

        self.commands = {
            "diff": {
                "usage": "Compares new AWS CloudFormation templates against old ones",
                "lifecycleEvents": ["diff"],
            },
        }
        self.hooks: Dict[str, Callable[[], Any]] = {
            "before:diff:diff": self.before_diff,
            "diff:diff": self.diff,
        }

        self.provider_name = service.provider_name
        self.backend = service.get_backend(self.provider_name)
        if self.backend is None:
            raise ProviderNotFoundError(self.provider_name)

        naming = self.backend.naming
        self.new_template_file: Path = service.build_dir / naming.compiled_template_file_name()
        self.stack_name: str = naming.stack_name()

    @property
    def spec_provider(self) -> Optional[SpecProvider]:
        return self._spec_provider

    def load(self) -> SpecProvider:
        """
        Resolve configuration and construct the spec provider.

        Raises:
            ConfigValidationError: If the diff configuration is invalid
            ProviderLoadError: If no provider can be found or constructed
        """
        try:
            config = build_config(merge_config(self.service.diff_config, self.config_overrides))
        except StackDiffError:
            self.status = "failed"
            raise

        try:
            if not self.registry.exists(self.provider_name):
                self.registry.discover(config.providers_path)
            self.log.info(f"Loading '{self.provider_name}' module")
            self._spec_provider = self.registry.create(
                self.provider_name, self.backend, config, self.log
            )
        except StackDiffError:
            self.status = "failed"
            raise
        except Exception as e:
            self.status = "failed"
            raise ProviderLoadError(self.provider_name, e) from e

        self.status = "loaded"
        return self._spec_provider

    def diff(self) -> Any:
        """
        Diff the compiled template against the deployed one.

        Returns:
            Whatever the spec provider's diff returns

        Raises:
            TemplateNotFoundError: If the compiled template does not exist
            DiffFailedError: For any other failure, with the original message
        """
        self.log.info("Running diff against deployed template")

        if self._spec_provider is None:
            self.status = "failed"
            raise DiffFailedError("Spec provider has not been loaded; call load() first")

        try:
            new_template = json.loads(self.new_template_file.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            self.status = "failed"
            raise TemplateNotFoundError(str(self.new_template_file)) from e
        except (OSError, ValueError) as e:
            self.status = "failed"
            raise DiffFailedError(str(e)) from e

        try:
            result = self._spec_provider.diff(self.stack_name, new_template)
        except StackDiffError as e:
            self.status = "failed"
            raise DiffFailedError(e.message) from e
        except Exception as e:
            self.status = "failed"
            raise DiffFailedError(str(e)) from e

        self.status = "diffed"
        return result

    def before_diff(self) -> None:
        """Pre-diff hook: load the provider and package the service if needed."""
        self.load()
        if not self.service.is_packaged:
            self.service.run_package()

    def run(self, package: bool = True) -> Any:
        """Run the full lifecycle: load, package when needed, diff."""
        if package:
            self.before_diff()
        else:
            self.load()
        return self.diff()
