# -*- coding: utf-8 -*-
"""发布状态机

每个操作都重新读取别名服务中的当前状态，校验转换是否合法，
再把新的别名指向写回别名服务。状态机本身不保存任何状态。

别名含义:
- live: 生产流量，可带一个灰度路由
- latest: 最近一次部署的版本
- previous: 上一个稳定版本，rollback 的目标
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from lad.lad_aws.client import (
    ALIAS_LATEST,
    ALIAS_LIVE,
    ALIAS_NAMES,
    ALIAS_PREVIOUS,
    AliasConfig,
    AliasServiceClient,
)
from lad.lad_canary.audit import DEFAULT_REASON, RollbackLogEntry, current_operator
from lad.lad_canary.state import AliasSnapshot, Canary, derive_canary_state
from lad.lad_utils.config import CommandContext
from lad.lad_utils.errors import (
    InvalidInputError,
    PreconditionError,
    ServiceError,
    ServiceNotFoundError,
)
from lad.lad_utils.executor import CommandExecutor, SubprocessExecutor
from lad.lad_utils.output import PrettyOutput

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    """一次状态转换的结果"""

    operation: str
    changed: bool
    message: str
    changes: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    next_steps: List[str] = field(default_factory=list)
    new_version: Optional[str] = None
    log_path: Optional[Path] = None
    log_written: bool = False


def format_percent(weight: float) -> str:
    return f"{weight * 100:.0f}%"


class DeploymentStateMachine:
    """灰度发布状态机"""

    def __init__(
        self,
        client: AliasServiceClient,
        context: CommandContext,
        executor: Optional[CommandExecutor] = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.client = client
        self.context = context
        self.executor = executor or SubprocessExecutor()
        self._now = now

    @property
    def function_name(self) -> str:
        return self.context.function_name

    @property
    def env(self) -> str:
        return self.context.env

    # ------------------------------------------------------------------
    # 读取
    # ------------------------------------------------------------------

    def read_alias(self, alias_name: str) -> AliasConfig:
        """读取别名并输出版本"""
        alias = self.client.get_alias(self.function_name, alias_name)
        PrettyOutput.info(f"{alias_name} 别名: 版本 {alias.version}")
        return alias

    def check_canary_active(self) -> Optional[Canary]:
        """
        检查 live 别名是否有活跃的灰度配置

        读取失败时默认视为无活跃灰度；strict_canary_check 开启时向上抛出错误。
        """
        try:
            live = self.client.get_alias(self.function_name, ALIAS_LIVE)
        except ServiceError as e:
            if self.context.settings.strict_canary_check:
                raise
            logger.warning(f"读取 live 别名失败，按无活跃灰度处理: {e}")
            return None

        state = derive_canary_state(live)
        if isinstance(state, Canary):
            return state
        return None

    def status(self) -> AliasSnapshot:
        """
        读取三个别名

        不存在的别名记为未配置；网络或其他服务错误向上抛出。
        """
        aliases = {}
        for name in ALIAS_NAMES:
            try:
                aliases[name] = self.client.get_alias(self.function_name, name)
            except ServiceNotFoundError as e:
                logger.debug(f"{name} 别名不存在: {e}")
                aliases[name] = None
        return AliasSnapshot(
            live=aliases[ALIAS_LIVE],
            previous=aliases[ALIAS_PREVIOUS],
            latest=aliases[ALIAS_LATEST],
        )

    # ------------------------------------------------------------------
    # deploy
    # ------------------------------------------------------------------

    def deploy(self, skip_sam: bool = False) -> TransitionResult:
        """部署新版本并更新 latest 别名"""
        PrettyOutput.info("检查灰度状态...")
        canary = self.check_canary_active()
        if canary is not None:
            raise PreconditionError(
                f"存在未完成的灰度发布 (版本 {canary.canary}, 权重 {format_percent(canary.weight)})",
                hint="请先执行 promote 完成灰度发布，或执行 rollback 回退",
            )
        PrettyOutput.success("无活跃灰度发布")

        deploy_time = self._now().strftime("%Y-%m-%d %H:%M:%S")
        description = f"Deployed at {deploy_time}"

        if not skip_sam:
            PrettyOutput.separator()
            PrettyOutput.info("执行 SAM build...")
            self.executor.run("sam", "build")
            PrettyOutput.success("SAM build 完成")

            PrettyOutput.separator()
            PrettyOutput.info("执行 SAM deploy...")
            self.executor.run(
                "sam",
                "deploy",
                "--parameter-overrides",
                f'Runtime=provided.al2023 Description="{description}"',
            )
            PrettyOutput.success("SAM deploy 完成")

        PrettyOutput.separator()
        PrettyOutput.info("创建新版本...")
        new_version = self.client.publish_version(self.function_name, description)
        PrettyOutput.success(f"创建版本 {new_version}")

        PrettyOutput.info("更新 latest 别名...")
        self.client.update_alias(self.function_name, ALIAS_LATEST, new_version)
        PrettyOutput.success(f"latest 别名已更新到版本 {new_version}")

        return TransitionResult(
            operation="deploy",
            changed=True,
            message="部署完成!",
            new_version=new_version,
            changes=[
                f"新版本: {new_version}",
                f"latest 别名: -> 版本 {new_version}",
            ],
            next_steps=[
                f"执行灰度发布: lad --env {self.env} canary --strategy canary10",
                f"自动灰度发布: lad --env {self.env} auto --percent 10 --wait 5m",
            ],
        )

    # ------------------------------------------------------------------
    # canary
    # ------------------------------------------------------------------

    def canary(self, weight: float, auto_promote: bool = False) -> TransitionResult:
        """
        配置 live 别名的灰度流量

        参数:
            weight: 灰度权重 (0.0-1.0)，0 表示清除灰度
            auto_promote: 配置完成后立即执行 promote
        """
        if not 0.0 <= weight <= 1.0:
            raise InvalidInputError(f"无效的灰度权重 '{weight}'，有效范围为 0-1")

        PrettyOutput.info("获取别名版本...")
        live = self.read_alias(ALIAS_LIVE)
        latest = self.read_alias(ALIAS_LATEST)

        if weight == 0:
            return self._clear_canary(live)

        if live.version == latest.version:
            raise PreconditionError(
                f"live 和 latest 指向同一版本 ({live.version})，请先执行 deploy 部署新版本"
            )

        self.apply_canary(live.version, latest.version, weight)

        if auto_promote:
            PrettyOutput.info("检测到 --auto-promote 参数，自动执行 promote...")
            PrettyOutput.separator()
            return self.apply_promote(live.version, latest.version)

        return TransitionResult(
            operation="canary",
            changed=True,
            message="灰度发布配置成功!",
            changes=[
                "流量分配:",
                f"  - 稳定版本 (v{live.version}): {format_percent(1 - weight)}",
                f"  - 灰度版本 (v{latest.version}): {format_percent(weight)}",
            ],
            next_steps=[
                f"完成灰度发布: lad --env {self.env} promote",
                f"回退灰度发布: lad --env {self.env} rollback",
            ],
        )

    def apply_canary(self, live_version: str, latest_version: str, weight: float) -> None:
        """把 live 主版本设为 live_version，weight 比例的流量路由到 latest_version"""
        PrettyOutput.info("配置灰度流量...")
        logger.debug(
            f"{self.function_name}: live={live_version} canary={latest_version} weight={weight}"
        )
        self.client.update_alias(
            self.function_name, ALIAS_LIVE, live_version, (latest_version, weight)
        )
        PrettyOutput.success(
            f"灰度配置完成: {format_percent(1 - weight)} v{live_version}, "
            f"{format_percent(weight)} v{latest_version}"
        )

    def _clear_canary(self, live: AliasConfig) -> TransitionResult:
        had_routing = live.routing is not None
        PrettyOutput.info("清除灰度配置...")
        self.client.update_alias(self.function_name, ALIAS_LIVE, live.version)
        PrettyOutput.success(f"live 别名已恢复为 100% 版本 {live.version}")
        return TransitionResult(
            operation="canary",
            changed=had_routing,
            message="灰度配置已清除",
            changes=[f"流量分配: 100% v{live.version}"],
            next_steps=[f"查看当前状态: lad --env {self.env} status"],
        )

    # ------------------------------------------------------------------
    # promote
    # ------------------------------------------------------------------

    def promote(self, skip_canary: bool = False) -> TransitionResult:
        """完成灰度发布，将流量完全切换到 latest 版本"""
        PrettyOutput.info("获取别名版本...")
        live = self.read_alias(ALIAS_LIVE)
        latest = self.read_alias(ALIAS_LATEST)

        if live.version == latest.version:
            return TransitionResult(
                operation="promote",
                changed=False,
                message=f"live 和 latest 已指向同一版本 ({live.version})，没有新版本需要切换",
                warnings=[
                    "可能的原因:",
                    "  - sam deploy 没有检测到代码变化",
                    "  - 已经完成了 promote 操作",
                ],
                next_steps=[f"部署新版本: lad --env {self.env} deploy"],
            )

        warnings = []
        if skip_canary:
            PrettyOutput.info("已跳过灰度状态检查 (--skip-canary)")
        else:
            state = derive_canary_state(live)
            if isinstance(state, Canary):
                PrettyOutput.info(
                    f"检测到活跃灰度配置: 版本 {state.canary}, 权重 {format_percent(state.weight)}"
                )
            else:
                warning = "没有活跃的灰度配置，建议先执行 canary 命令进行灰度验证"
                PrettyOutput.warning(warning)
                warnings.append(warning)

        PrettyOutput.separator()
        result = self.apply_promote(live.version, latest.version)
        result.warnings = warnings + result.warnings
        return result

    def apply_promote(self, live_version: str, latest_version: str) -> TransitionResult:
        """previous <- live_version，live <- latest_version 并清除灰度"""
        PrettyOutput.info("更新 previous 别名...")
        self.client.update_alias(self.function_name, ALIAS_PREVIOUS, live_version)
        PrettyOutput.success(f"previous 别名已更新到版本 {live_version}")

        PrettyOutput.info("更新 live 别名...")
        self.client.update_alias(self.function_name, ALIAS_LIVE, latest_version)
        PrettyOutput.success(f"live 别名已更新到版本 {latest_version}")

        return TransitionResult(
            operation="promote",
            changed=True,
            message="Promote 完成!",
            changes=[
                "版本变更:",
                f"  - previous: -> 版本 {live_version}",
                f"  - live: 版本 {live_version} -> 版本 {latest_version}",
            ],
            next_steps=[
                f"部署新版本: lad --env {self.env} deploy",
                f"回退到上一版本: lad --env {self.env} rollback",
            ],
        )

    # ------------------------------------------------------------------
    # rollback
    # ------------------------------------------------------------------

    def rollback(
        self, reason: Optional[str] = None, operator: Optional[str] = None
    ) -> TransitionResult:
        """
        回退到 previous 版本

        同时把 latest 指向 previous，避免下次 promote 又推上问题版本。
        live 更新成功后即写入回退日志，即使随后 latest 更新失败。
        回退日志写入失败只给出警告，不影响回退结果。
        """
        PrettyOutput.info("获取别名版本...")
        live = self.read_alias(ALIAS_LIVE)
        previous = self.read_alias(ALIAS_PREVIOUS)

        if live.version == previous.version:
            warnings = []
            if live.routing is not None:
                warnings.append(
                    f"live 仍存在灰度路由，如需清除请执行: lad --env {self.env} canary --percent 0"
                )
            return TransitionResult(
                operation="rollback",
                changed=False,
                message=f"live 和 previous 已指向同一版本 ({live.version})，无需回退",
                warnings=warnings,
            )

        PrettyOutput.separator()
        PrettyOutput.info("更新 live 别名...")
        self.client.update_alias(self.function_name, ALIAS_LIVE, previous.version)
        PrettyOutput.success(f"live 别名已更新到版本 {previous.version}")

        entry = RollbackLogEntry(
            env=self.env,
            from_version=live.version,
            to_version=previous.version,
            reason=reason or DEFAULT_REASON,
            operator=operator or current_operator(),
            timestamp=self._now(),
        )
        log_path = self.context.settings.rollback_log_path
        # live 已经切换，latest 更新失败时同样记录日志
        try:
            PrettyOutput.info("更新 latest 别名...")
            self.client.update_alias(self.function_name, ALIAS_LATEST, previous.version)
            PrettyOutput.success(f"latest 别名已更新到版本 {previous.version}")
        finally:
            log_warning = self._write_rollback_log(entry, log_path)

        warnings = [log_warning] if log_warning else []
        log_written = log_warning is None

        return TransitionResult(
            operation="rollback",
            changed=True,
            message="Rollback 完成!",
            changes=[
                "版本变更:",
                f"  - live: 版本 {live.version} -> 版本 {previous.version}",
                f"  - latest: -> 版本 {previous.version}",
                "回退信息:",
                f"  - 原因: {entry.reason}",
                f"  - 操作人: {entry.operator}",
            ],
            warnings=warnings,
            next_steps=[
                f"查看当前状态: lad --env {self.env} status",
                f"部署新版本: lad --env {self.env} deploy",
            ],
            log_path=log_path,
            log_written=log_written,
        )

    def _write_rollback_log(self, entry: RollbackLogEntry, log_path: Path) -> Optional[str]:
        """追加回退日志，失败时返回警告信息"""
        try:
            entry.append_to_file(log_path)
        except OSError as e:
            warning = f"无法写入回退日志: {e}"
            logger.warning(warning)
            PrettyOutput.warning(warning)
            return warning
        PrettyOutput.info(f"回退日志已记录到: {log_path}")
        return None

    # ------------------------------------------------------------------
    # switch
    # ------------------------------------------------------------------

    def switch(self, version: str) -> TransitionResult:
        """
        把 live 直接切换到指定版本并清除灰度

        previous 和 latest 不会被修改。
        """
        if not version or not str(version).strip():
            raise InvalidInputError("必须指定 --version 参数")
        version = str(version).strip()

        PrettyOutput.info(f"验证版本 {version} 是否存在...")
        self.client.version_exists(self.function_name, version)
        PrettyOutput.success(f"版本 {version} 存在")

        live = self.read_alias(ALIAS_LIVE)
        if live.version == version:
            warnings = []
            if live.routing is not None:
                warnings.append(
                    f"live 仍存在灰度路由，如需清除请执行: lad --env {self.env} canary --percent 0"
                )
            return TransitionResult(
                operation="switch",
                changed=False,
                message=f"live 已指向版本 {version}，无需切换",
                warnings=warnings,
            )

        PrettyOutput.separator()
        PrettyOutput.info("更新 live 别名...")
        self.client.update_alias(self.function_name, ALIAS_LIVE, version)
        PrettyOutput.success(f"live 别名已更新到版本 {version}")

        return TransitionResult(
            operation="switch",
            changed=True,
            message="Switch 完成!",
            changes=[
                "版本变更:",
                f"  - live: 版本 {live.version} -> 版本 {version}",
            ],
            warnings=[
                "注意事项:",
                "  - 此操作绕过了正常的发布流程",
                "  - previous 别名未更新，仍指向原来的版本",
                "  - 如需回退，请使用 rollback 命令或再次使用 switch 命令",
            ],
            next_steps=[
                f"查看当前状态: lad --env {self.env} status",
                f"回退到上一版本: lad --env {self.env} rollback",
            ],
        )
