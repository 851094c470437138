"""Shared fixtures for stackdiff tests."""

import json
import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from stackdiff.config import build_config
from stackdiff.service import AwsNaming, BackendRegistration, Service


SAMPLE_TEMPLATE = {
    "Resources": {
        "Test": {
            "Type": "AWS::Lambda::Function",
            "Properties": {
                "Handler": "index.handler",
                "Runtime": "python3.9",
            },
        },
    },
}


@pytest.fixture(autouse=True)
def aws_environment():
    """Keep boto3 away from real credentials and config files."""
    with patch.dict(os.environ, {
        "AWS_ACCESS_KEY_ID": "testing",
        "AWS_SECRET_ACCESS_KEY": "testing",
        "AWS_SESSION_TOKEN": "testing",
        "AWS_CONFIG_FILE": os.devnull,
        "AWS_SHARED_CREDENTIALS_FILE": os.devnull,
    }):
        yield


@pytest.fixture
def log():
    """Logger handed to providers and plugins."""
    return logging.getLogger("stackdiff.tests")


@pytest.fixture
def backend():
    """AWS backend registration for service 'svc' on stage 'dev'."""
    return BackendRegistration(
        name="aws",
        region="eu-west-1",
        stage="dev",
        naming=AwsNaming("svc", "dev"),
    )


@pytest.fixture
def config():
    """Empty diff configuration."""
    return build_config({})


@pytest.fixture
def service(tmp_path):
    """Service rooted in a temp dir with a compiled template in .serverless/."""
    build_dir = tmp_path / ".serverless"
    build_dir.mkdir()
    (build_dir / AwsNaming.COMPILED_TEMPLATE_FILE_NAME).write_text(
        json.dumps(SAMPLE_TEMPLATE, indent=4)
    )
    return Service(
        name="svc",
        service_dir=tmp_path,
        provider={"name": "aws", "region": "eu-west-1", "stage": "dev"},
        custom={"diff": {}},
    )


@pytest.fixture
def template_file(service) -> Path:
    """Path of the compiled template written by the service fixture."""
    return service.build_dir / AwsNaming.COMPILED_TEMPLATE_FILE_NAME


@pytest.fixture
def sample_template():
    """Copy of the template the service fixture compiles."""
    return json.loads(json.dumps(SAMPLE_TEMPLATE))
