"""Lambda 别名服务访问层"""

from lad.lad_aws.classifier import classify_error
from lad.lad_aws.client import (
    ALIAS_LATEST,
    ALIAS_LIVE,
    ALIAS_NAMES,
    ALIAS_PREVIOUS,
    AliasConfig,
    AliasServiceClient,
    LambdaAliasClient,
)

__all__ = [
    "ALIAS_LATEST",
    "ALIAS_LIVE",
    "ALIAS_NAMES",
    "ALIAS_PREVIOUS",
    "AliasConfig",
    "AliasServiceClient",
    "LambdaAliasClient",
    "classify_error",
]
