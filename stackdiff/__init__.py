"""
stackdiff: compare a compiled CloudFormation template with the deployed stack.
"""

from .plugin import DiffPlugin
from .service import Service, ServiceLoader
from .exceptions import StackDiffError


__version__ = "0.1.0"

__all__ = ["DiffPlugin", "Service", "ServiceLoader", "StackDiffError", "__version__"]
