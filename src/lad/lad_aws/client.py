# -*- coding: utf-8 -*-
"""Lambda 别名服务客户端

AliasServiceClient 定义状态机依赖的别名服务接口，
LambdaAliasClient 基于 boto3 实现该接口。
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from lad.lad_aws.classifier import classify_error
from lad.lad_utils.errors import ServiceGenericError, service_error_for

logger = logging.getLogger(__name__)

ALIAS_LIVE = "live"
ALIAS_PREVIOUS = "previous"
ALIAS_LATEST = "latest"
ALIAS_NAMES = (ALIAS_LIVE, ALIAS_PREVIOUS, ALIAS_LATEST)

# 灰度路由：(灰度版本, 权重)
Routing = Tuple[str, float]


@dataclass(frozen=True)
class AliasConfig:
    """别名当前配置"""

    name: str
    version: str
    routing: Optional[Routing] = None

    @property
    def canary_active(self) -> bool:
        return self.routing is not None


class AliasServiceClient(ABC):
    """别名服务接口，所有方法失败时抛出 ServiceError 子类"""

    @abstractmethod
    def publish_version(self, function_name: str, description: str) -> str:
        """发布新版本，返回版本号"""

    @abstractmethod
    def get_alias(self, function_name: str, alias_name: str) -> AliasConfig:
        """获取别名的版本与路由配置"""

    @abstractmethod
    def update_alias(
        self,
        function_name: str,
        alias_name: str,
        version: str,
        routing: Optional[Routing] = None,
    ) -> None:
        """更新别名（总是写入完整路由配置，routing 为 None 时清除灰度）"""

    @abstractmethod
    def version_exists(self, function_name: str, version: str) -> None:
        """验证版本存在，不存在时抛出 ServiceNotFoundError"""

    def get_alias_version(self, function_name: str, alias_name: str) -> str:
        """获取别名指向的主版本"""
        return self.get_alias(function_name, alias_name).version


class LambdaAliasClient(AliasServiceClient):
    """封装 Lambda API 操作"""

    def __init__(self, profile: Optional[str] = None, client: Any = None) -> None:
        """
        创建 Lambda 客户端

        参数:
            profile: AWS Profile 名称，为空时使用默认凭证链
            client: 已创建的 boto3 lambda 客户端（测试时注入）
        """
        if client is None:
            try:
                session = boto3.Session(profile_name=profile) if profile else boto3.Session()
                client = session.client("lambda")
            except BotoCoreError as e:
                raise ServiceGenericError(f"创建 AWS 客户端失败: {e}") from e
        self._client = client

    def _call(self, operation: str, **kwargs: Any) -> Dict[str, Any]:
        """调用 Lambda API，并把异常转换为分类后的服务错误"""
        logger.debug(f"Lambda.{operation} {kwargs}")
        try:
            return getattr(self._client, operation)(**kwargs)
        except (ClientError, BotoCoreError) as e:
            kind = classify_error(e)
            logger.debug(f"Lambda.{operation} 失败 ({kind.value}): {e}")
            raise service_error_for(kind, str(e)) from e

    def publish_version(self, function_name: str, description: str) -> str:
        result = self._call(
            "publish_version", FunctionName=function_name, Description=description
        )
        return str(result["Version"])

    def get_alias(self, function_name: str, alias_name: str) -> AliasConfig:
        result = self._call("get_alias", FunctionName=function_name, Name=alias_name)
        weights = (result.get("RoutingConfig") or {}).get("AdditionalVersionWeights") or {}

        routing: Optional[Routing] = None
        if weights:
            if len(weights) > 1:
                logger.warning(
                    f"别名 {alias_name} 存在多个灰度路由，仅使用第一个: {weights}"
                )
            canary_version, weight = next(iter(weights.items()))
            routing = (str(canary_version), float(weight))

        return AliasConfig(
            name=alias_name, version=str(result["FunctionVersion"]), routing=routing
        )

    def update_alias(
        self,
        function_name: str,
        alias_name: str,
        version: str,
        routing: Optional[Routing] = None,
    ) -> None:
        weights: Dict[str, float] = {}
        if routing is not None:
            canary_version, weight = routing
            weights[canary_version] = weight

        self._call(
            "update_alias",
            FunctionName=function_name,
            Name=alias_name,
            FunctionVersion=version,
            RoutingConfig={"AdditionalVersionWeights": weights},
        )

    def version_exists(self, function_name: str, version: str) -> None:
        # 使用 GetFunction 并指定 Qualifier 来验证版本是否存在
        self._call("get_function", FunctionName=function_name, Qualifier=version)
