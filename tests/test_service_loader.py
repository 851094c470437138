"""Tests for service definition loading and host collaborators."""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from stackdiff.exceptions import ConfigValidationError, PackageError
from stackdiff.service import AwsNaming, Service, ServiceLoader


class TestServiceLoader:
    """Load and validate serverless-style service files."""

    def setup_method(self):
        self.loader = ServiceLoader()

    def write_service(self, tmp_path: Path, content) -> Path:
        path = tmp_path / "serverless.yml"
        with open(path, 'w') as f:
            yaml.dump(content, f)
        return path

    def test_load_full_definition(self, tmp_path):
        path = self.write_service(tmp_path, {
            "service": "orders",
            "provider": {"name": "aws", "region": "eu-west-1", "stage": "prod"},
            "package": {"path": "artifacts"},
            "custom": {"diff": {"reportPath": "diff.json", "tableWidth": 100}},
        })

        service = self.loader.load(path)

        assert service.name == "orders"
        assert service.provider_name == "aws"
        assert service.region == "eu-west-1"
        assert service.stage == "prod"
        assert service.service_dir == tmp_path.resolve()
        assert service.build_dir == tmp_path.resolve() / "artifacts"
        assert service.is_packaged
        assert service.diff_config == {"reportPath": "diff.json", "tableWidth": 100}

    def test_defaults(self, tmp_path):
        """Region, stage and build directory fall back to serverless defaults."""
        path = self.write_service(tmp_path, {"service": "orders", "provider": "aws"})

        service = self.loader.load(path)

        assert service.region == "us-east-1"
        assert service.stage == "dev"
        assert service.build_dir == tmp_path.resolve() / ".serverless"
        assert not service.is_packaged
        assert service.diff_config == {}

    def test_overrides_win(self, tmp_path):
        path = self.write_service(tmp_path, {
            "service": "orders",
            "provider": {"name": "aws", "region": "eu-west-1"},
        })

        service = self.loader.load(path, overrides={"region": "us-west-2", "stage": None})

        assert service.region == "us-west-2"
        assert service.stage == "dev"

    def test_on_key_preserved(self, tmp_path):
        """Keys like 'on' stay strings instead of turning into booleans."""
        path = tmp_path / "serverless.yml"
        path.write_text("service: orders\nprovider:\n  name: aws\ncustom:\n  diff:\n    on: yes\n")

        service = self.loader.load(path)

        assert "on" in service.diff_config

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigValidationError) as exc_info:
            self.loader.load(tmp_path / "missing.yml")

        assert "Failed to load service definition" in exc_info.value.errors[0].message

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "serverless.yml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigValidationError):
            self.loader.load(path)

    def test_collects_all_errors(self, tmp_path):
        path = self.write_service(tmp_path, {
            "provider": {"region": 5},
            "custom": {"diff": ["not", "a", "dict"]},
            "package": {"path": 1},
        })

        with pytest.raises(ConfigValidationError) as exc_info:
            self.loader.load(path)

        paths = {e.path for e in exc_info.value.errors}
        assert paths == {"service", "provider.name", "provider.region", "custom.diff", "package.path"}


class TestService:
    """Backend registrations and packaging."""

    def make_service(self, tmp_path, **package):
        return Service(
            name="orders",
            service_dir=tmp_path,
            provider={"name": "aws", "region": "eu-west-1", "stage": "prod"},
            package=package,
        )

    def test_aws_backend_naming(self, tmp_path):
        backend = self.make_service(tmp_path).get_backend("aws")

        assert backend.region == "eu-west-1"
        assert backend.naming.compiled_template_file_name() == "cloudformation-template-update-stack.json"
        assert backend.naming.stack_name() == "orders-prod"

    def test_unknown_backend(self, tmp_path):
        assert self.make_service(tmp_path).get_backend("azure") is None

    def test_custom_backend_registration(self, tmp_path):
        service = self.make_service(tmp_path)
        service.backends["custom"] = AwsNaming

        assert service.get_backend("custom").naming.stack_name() == "orders-prod"

    def test_default_package_command(self, tmp_path):
        assert self.make_service(tmp_path).package_command == [
            "serverless", "package", "--stage", "prod", "--region", "eu-west-1"
        ]

    def test_string_package_command(self, tmp_path):
        service = self.make_service(tmp_path, command="sls package --verbose")

        assert service.package_command == ["sls", "package", "--verbose"]

    @patch("stackdiff.service.subprocess.run")
    def test_run_package(self, mock_run, tmp_path):
        service = self.make_service(tmp_path, command=["make", "package"])

        service.run_package()

        mock_run.assert_called_once_with(["make", "package"], cwd=tmp_path, check=True)

    @patch("stackdiff.service.subprocess.run")
    def test_run_package_failure(self, mock_run, tmp_path):
        mock_run.side_effect = subprocess.CalledProcessError(3, ["make"])

        with pytest.raises(PackageError, match="exit code 3"):
            self.make_service(tmp_path, command=["make"]).run_package()

    @patch("stackdiff.service.subprocess.run")
    def test_package_command_missing(self, mock_run, tmp_path):
        mock_run.side_effect = FileNotFoundError("serverless")

        with pytest.raises(PackageError, match="not found: serverless"):
            self.make_service(tmp_path).run_package()
