"""Service definition loading and host-side collaborators (naming, packaging)."""

import logging
import shlex
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Type
import yaml

from stackdiff.exceptions import ConfigValidationError, PackageError, ValidationError


logger = logging.getLogger(__name__)


class PreservingLoader(yaml.SafeLoader):
    """Custom YAML loader that preserves string keys like 'on' instead of converting to bool."""
    pass


# Override the implicit resolver for boolean values to prevent 'on' from being converted to True
PreservingLoader.yaml_implicit_resolvers = dict(PreservingLoader.yaml_implicit_resolvers)
for _first in ('o', 'O'):
    if _first in PreservingLoader.yaml_implicit_resolvers:
        PreservingLoader.yaml_implicit_resolvers[_first] = [
            (tag, regexp) for tag, regexp in PreservingLoader.yaml_implicit_resolvers[_first]
            if tag != 'tag:yaml.org,2002:bool'
        ]


DEFAULT_BUILD_DIR = ".serverless"
DEFAULT_REGION = "us-east-1"
DEFAULT_STAGE = "dev"


class AwsNaming:
    """Artifact and stack naming used by the AWS backend."""

    COMPILED_TEMPLATE_FILE_NAME = "cloudformation-template-update-stack.json"

    def __init__(self, service_name: str, stage: str):
        self.service_name = service_name
        self.stage = stage

    def compiled_template_file_name(self) -> str:
        return self.COMPILED_TEMPLATE_FILE_NAME

    def stack_name(self) -> str:
        return f"{self.service_name}-{self.stage}"


KNOWN_BACKENDS: Dict[str, Type[Any]] = {
    "aws": AwsNaming,
}


@dataclass
class BackendRegistration:
    """
    The active backend as seen by a spec provider.

    Attributes:
        name: Backend kind (e.g. 'aws')
        region: Region the stack lives in
        stage: Deployment stage
        naming: Object exposing compiled_template_file_name() and stack_name()
    """
    name: str
    region: str
    stage: str
    naming: Any


@dataclass
class Service:
    """A loaded service definition."""
    name: str
    service_dir: Path
    provider: Dict[str, Any] = field(default_factory=dict)
    custom: Dict[str, Any] = field(default_factory=dict)
    package: Dict[str, Any] = field(default_factory=dict)
    backends: Dict[str, Type[Any]] = field(default_factory=lambda: dict(KNOWN_BACKENDS))

    @property
    def provider_name(self) -> str:
        return self.provider.get("name", "")

    @property
    def region(self) -> str:
        return self.provider.get("region") or DEFAULT_REGION

    @property
    def stage(self) -> str:
        return self.provider.get("stage") or DEFAULT_STAGE

    @property
    def diff_config(self) -> Dict[str, Any]:
        """The ``custom.diff`` section, or an empty mapping."""
        return (self.custom or {}).get("diff") or {}

    @property
    def is_packaged(self) -> bool:
        return bool(self.package.get("path"))

    @property
    def build_dir(self) -> Path:
        """Directory holding the compiled template."""
        return self.service_dir / (self.package.get("path") or DEFAULT_BUILD_DIR)

    @property
    def package_command(self) -> List[str]:
        command = self.package.get("command")
        if not command:
            return ["serverless", "package", "--stage", self.stage, "--region", self.region]
        if isinstance(command, str):
            return shlex.split(command)
        return [str(token) for token in command]

    def get_backend(self, name: str) -> Optional[BackendRegistration]:
        """Registration for a backend kind, or None if it is unknown."""
        naming_cls = self.backends.get(name)
        if naming_cls is None:
            return None
        return BackendRegistration(
            name=name,
            region=self.region,
            stage=self.stage,
            naming=naming_cls(self.name, self.stage),
        )

    def run_package(self) -> None:
        """Run the packaging command from the service directory."""
        command = self.package_command
        logger.info(f"Packaging service: {' '.join(command)}")
        try:
            subprocess.run(command, cwd=self.service_dir, check=True)
        except FileNotFoundError as e:
            raise PackageError(f"Package command not found: {command[0]}") from e
        except subprocess.CalledProcessError as e:
            raise PackageError(f"Package command failed with exit code {e.returncode}") from e


class ServiceLoader:
    """Loads and validates a serverless-style service definition."""

    def __init__(self):
        self.errors: List[ValidationError] = []

    def load(self, service_file: Path, overrides: Optional[Dict[str, Any]] = None) -> Service:
        """
        Load a service definition YAML.

        Args:
            service_file: Path to the service file
            overrides: Provider fields (region, stage) that win over the file

        Raises:
            ConfigValidationError: If the file cannot be read or is invalid
        """
        self.errors = []
        service_file = Path(service_file)
        definition: Any = None
        try:
            with open(service_file, 'r') as f:
                definition = yaml.load(f, Loader=PreservingLoader)
        except (OSError, yaml.YAMLError) as e:
            self._add_error(f"Failed to load service definition: {e}")
            self._raise_validation_errors()

        if definition is None or not isinstance(definition, dict):
            self._add_error("Service definition must be a YAML object/dictionary")
            self._raise_validation_errors()

        provider = definition.get('provider')
        # Serverless accepts the bare backend name as shorthand
        if isinstance(provider, str):
            provider = {'name': provider}
        provider = dict(provider) if isinstance(provider, dict) else provider

        self._validate(definition, provider)
        if self.errors:
            self._raise_validation_errors()

        for key, value in (overrides or {}).items():
            if value is not None:
                provider[key] = value

        name = definition['service']
        if isinstance(name, dict):
            name = name.get('name')

        return Service(
            name=name,
            service_dir=service_file.resolve().parent,
            provider=provider,
            custom=definition.get('custom') or {},
            package=definition.get('package') or {},
        )

    def _validate(self, definition: Dict[str, Any], provider: Any):
        name = definition.get('service')
        if isinstance(name, dict):
            name = name.get('name')
        if not name or not isinstance(name, str):
            self._add_error("'service' field is required and must be a string", 'service')

        if not isinstance(provider, dict):
            self._add_error("'provider' field is required and must be a dictionary", 'provider')
        else:
            if not isinstance(provider.get('name'), str) or not provider.get('name'):
                self._add_error("'name' field is required", 'provider.name')
            for key in ('region', 'stage'):
                if key in provider and not isinstance(provider[key], str):
                    self._add_error("must be a string", f'provider.{key}')

        custom = definition.get('custom')
        if custom is not None:
            if not isinstance(custom, dict):
                self._add_error("must be a dictionary", 'custom')
            elif custom.get('diff') is not None and not isinstance(custom['diff'], dict):
                self._add_error("must be a dictionary", 'custom.diff')

        package = definition.get('package')
        if package is not None:
            if not isinstance(package, dict):
                self._add_error("must be a dictionary", 'package')
            else:
                if 'path' in package and not isinstance(package['path'], str):
                    self._add_error("must be a string", 'package.path')
                command = package.get('command')
                if command is not None and not isinstance(command, (str, list)):
                    self._add_error("must be a string or a list", 'package.command')

    def _add_error(self, message: str, path: str = ""):
        self.errors.append(ValidationError(message=message, path=path))

    def _raise_validation_errors(self):
        raise ConfigValidationError(self.errors)
