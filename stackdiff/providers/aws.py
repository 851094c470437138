"""
AWS CloudFormation spec provider.

Fetches the processed template of the deployed stack and diffs it against
the locally compiled one.
"""

import json
from typing import Any, Dict, Mapping

import boto3
import yaml
from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import BackendError
from ..report import ChangeReport
from ..templatediff import TemplateDiff, diff_template, print_differences
from .base import SpecProvider, Template


# Error codes CloudFormation returns for a stack that was never deployed
STACK_MISSING_ERROR_CODES = frozenset({"ValidationError"})


def is_stack_missing(error: BaseException) -> bool:
    """True when ``error`` means the stack does not exist yet."""
    if not isinstance(error, ClientError):
        return False
    code = error.response.get("Error", {}).get("Code")
    return code in STACK_MISSING_ERROR_CODES


def error_message(error: BaseException) -> str:
    """The backend's own message for a failed call."""
    if isinstance(error, ClientError):
        message = error.response.get("Error", {}).get("Message")
        if message:
            return message
    return str(error)


class AwsSpecProvider(SpecProvider):
    """Spec provider backed by the CloudFormation GetTemplate API."""

    def setup(self) -> None:
        self._client = boto3.client("cloudformation", region_name=self.backend.region)

    @property
    def client(self):
        return self._client

    @client.setter
    def client(self, client) -> None:
        self._client = client

    def diff(self, stack_name: str, new_template: Template) -> TemplateDiff:
        """
        Diff the deployed stack against ``new_template``.

        A stack that does not exist yet is compared as an empty template, so
        every resource shows up as a creation.

        Raises:
            BackendError: For any other CloudFormation failure
        """
        try:
            response = self._client.get_template(
                StackName=stack_name,
                TemplateStage="Processed",
            )
            old_template = parse_template_body(response.get("TemplateBody"))
        except ClientError as e:
            if not is_stack_missing(e):
                raise BackendError(error_message(e), e.response.get("Error", {}).get("Code")) from e
            self.log.info(f"Stack '{stack_name}' has not been deployed yet, diffing against an empty template")
            old_template = {}
        except BotoCoreError as e:
            raise BackendError(error_message(e)) from e

        return self.compare(old_template, new_template)

    def compare(self, old_template: Template, new_template: Template) -> TemplateDiff:
        """Diff two templates, then filter, report and render non-empty results."""
        diff = diff_template(old_template, new_template)
        if diff.is_empty:
            self.log.info("There were no differences")
            return diff

        diff = TemplateDiff.from_dict(self._exclude(diff.to_dict()))
        report = self.report(diff)
        self._generate_report(report)
        print_differences(diff, width=self.config.get("tableWidth"))
        return diff

    def report(self, diff: TemplateDiff) -> Dict[str, int]:
        return ChangeReport.from_diff(diff).to_dict()


class CloudFormationLoader(yaml.SafeLoader):
    """YAML loader for CloudFormation templates: short-form intrinsics, no timestamps."""
    pass


# Dates such as AWSTemplateFormatVersion stay strings, as in JSON templates
CloudFormationLoader.yaml_implicit_resolvers = {
    first: [
        (tag, regexp) for tag, regexp in resolvers
        if tag != 'tag:yaml.org,2002:timestamp'
    ]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _construct_intrinsic(loader: yaml.SafeLoader, tag_suffix: str, node: yaml.Node) -> Dict[str, Any]:
    """Expand ``!Ref x`` to ``{"Ref": x}`` and ``!Sub x`` to ``{"Fn::Sub": x}``."""
    if isinstance(node, yaml.ScalarNode):
        value: Any = loader.construct_scalar(node)
    elif isinstance(node, yaml.SequenceNode):
        value = loader.construct_sequence(node, deep=True)
    else:
        value = loader.construct_mapping(node, deep=True)

    if tag_suffix in ("Ref", "Condition"):
        return {tag_suffix: value}
    if tag_suffix == "GetAtt" and isinstance(value, str):
        value = value.split(".", 1)
    return {f"Fn::{tag_suffix}": value}


CloudFormationLoader.add_multi_constructor("!", _construct_intrinsic)


def parse_template_body(body: Any) -> Dict[str, Any]:
    """
    Decode a GetTemplate body.

    botocore already decodes JSON bodies; YAML-authored stacks come back
    as text and are read into the same shape as their JSON form.
    """
    if body is None:
        return {}
    if isinstance(body, Mapping):
        return dict(body)
    try:
        return json.loads(body)
    except ValueError:
        template = yaml.load(body, Loader=CloudFormationLoader)
        if not isinstance(template, dict):
            raise ValueError("Deployed template body is not a JSON or YAML object")
        return template
