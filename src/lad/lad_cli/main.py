# -*- coding: utf-8 -*-
"""
lad 命令行接口

Lambda 别名灰度发布工具: deploy / canary / auto / promote / rollback / switch / status，
以及模板补丁命令 patch / unpatch。

退出码: 0 成功，1 参数错误，2 AWS 错误，3 资源不存在，4 网络错误
"""

import json
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional, Tuple

import typer

from lad import __version__
from lad.lad_aws.client import AliasConfig, AliasServiceClient, LambdaAliasClient
from lad.lad_canary.auto import AutoProgression
from lad.lad_canary.machine import DeploymentStateMachine, TransitionResult, format_percent
from lad.lad_canary.state import StatusClass
from lad.lad_canary.strategy import (
    ALL_STRATEGIES,
    CanaryStrategy,
    parse_strategy,
    strategy_for_percent,
    successor,
    valid_strategy_names,
)
from lad.lad_config.samconfig import resolve_function_name, resolve_profile
from lad.lad_patcher.patch import DEFAULT_FUNCTION_RESOURCE, DEFAULT_TEMPLATE, PatchOptions, patch
from lad.lad_patcher.unpatch import UnpatchOptions, unpatch
from lad.lad_utils.config import CommandContext, LadSettings, load_settings, validate_env
from lad.lad_utils.duration import format_duration, parse_duration
from lad.lad_utils.errors import InvalidInputError, LadError
from lad.lad_utils.executor import CommandExecutor, SubprocessExecutor
from lad.lad_utils.output import OutputType, PrettyOutput

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Lambda 别名灰度发布工具",
    no_args_is_help=True,
    add_completion=False,
)

# 测试时替换
sleep = time.sleep


def create_client(profile: Optional[str]) -> AliasServiceClient:
    return LambdaAliasClient(profile=profile)


def create_executor() -> CommandExecutor:
    return SubprocessExecutor()


@dataclass
class CliOptions:
    """根命令的全局选项"""

    env: Optional[str] = None
    function: Optional[str] = None
    profile: Optional[str] = None
    settings: LadSettings = field(default_factory=LadSettings)


@contextmanager
def _guard() -> Iterator[None]:
    """把 LadError 转换为错误输出和对应的退出码"""
    try:
        yield
    except LadError as e:
        logger.debug(f"命令失败 ({e.kind.value}): {e.message}")
        PrettyOutput.error(e.message)
        if e.hint:
            PrettyOutput.info(e.hint)
        raise typer.Exit(code=int(e.exit_code))


def _options(ctx: typer.Context) -> CliOptions:
    if not isinstance(ctx.obj, CliOptions):
        ctx.obj = CliOptions()
    return ctx.obj


def _build_context(options: CliOptions) -> CommandContext:
    """校验环境并解析函数名与 profile"""
    env = validate_env(options.env)
    samconfig = options.settings.samconfig
    function_name = resolve_function_name(env, options.function, samconfig)
    profile = resolve_profile(env, options.profile, samconfig)
    logger.debug(f"env={env} function={function_name} profile={profile}")
    return CommandContext(
        env=env,
        function_name=function_name,
        profile=profile,
        settings=options.settings,
    )


def _build_machine(ctx: typer.Context, title: str) -> DeploymentStateMachine:
    context = _build_context(_options(ctx))
    PrettyOutput.section(f"{title} - 环境: {context.env}", OutputType.PROGRESS)
    PrettyOutput.info(f"函数: {context.function_name}")
    if context.profile:
        PrettyOutput.info(f"AWS Profile: {context.profile}")
    client = create_client(context.profile)
    return DeploymentStateMachine(client, context, executor=create_executor())


def _print_result(result: TransitionResult) -> None:
    """输出状态转换结果"""
    PrettyOutput.separator()
    if result.changed:
        PrettyOutput.success(result.message)
    else:
        PrettyOutput.info(result.message)
    for line in result.changes:
        PrettyOutput.info(line)
    for line in result.warnings:
        PrettyOutput.warning(line)
    if result.next_steps:
        PrettyOutput.info("下一步:")
        for step in result.next_steps:
            PrettyOutput.info(f"  {step}")


@app.callback()
def cli(
    ctx: typer.Context,
    env: Optional[str] = typer.Option(
        None, "--env", "-e", help="目标环境: test 或 prod（别名操作必须指定）"
    ),
    function: Optional[str] = typer.Option(
        None, "--function", "-f", help="Lambda 函数名（默认从 samconfig.toml 推导）"
    ),
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="AWS profile（默认从 samconfig.toml 读取）"
    ),
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help="配置文件路径（默认 ~/.lad/config.yaml）"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出调试日志"),
) -> None:
    """Lambda 别名灰度发布工具"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    with _guard():
        settings = load_settings(config_file)
    PrettyOutput.configure_console(
        pretty=settings.pretty_output, traceback=settings.print_error_traceback
    )
    ctx.obj = CliOptions(env=env, function=function, profile=profile, settings=settings)


@app.command()
def version() -> None:
    """显示版本"""
    typer.echo(f"lad {__version__}")


@app.command()
def deploy(
    ctx: typer.Context,
    skip_sam: bool = typer.Option(
        False, "--skip-sam", help="跳过 sam build/deploy，只发布版本并更新 latest"
    ),
) -> None:
    """部署新版本并更新 latest 别名"""
    with _guard():
        machine = _build_machine(ctx, "部署新版本")
        _print_result(machine.deploy(skip_sam=skip_sam))


def _resolve_canary_strategy(
    percent: Optional[int], strategy: Optional[str]
) -> Tuple[float, Optional[CanaryStrategy]]:
    """--percent 与 --strategy 二选一，返回权重和对应的策略"""
    if percent is not None and strategy is not None:
        raise InvalidInputError("--percent 和 --strategy 不能同时使用")
    if percent is None and strategy is None:
        raise InvalidInputError(
            "必须指定 --percent 或 --strategy 参数",
            hint=f"有效的策略: {valid_strategy_names()}",
        )
    if strategy is not None:
        parsed = parse_strategy(strategy)
        if parsed is None:
            raise InvalidInputError(
                f"无效的策略 '{strategy}'", hint=f"有效的策略: {valid_strategy_names()}"
            )
        return parsed.weight, parsed
    if percent < 0 or percent > 100:
        raise InvalidInputError(f"无效的百分比 '{percent}'，有效范围为 0-100")
    return percent / 100, strategy_for_percent(percent)


@app.command()
def canary(
    ctx: typer.Context,
    percent: Optional[int] = typer.Option(None, "--percent", help="灰度流量百分比 (0-100)"),
    strategy: Optional[str] = typer.Option(
        None, "--strategy", "-s", help="灰度策略: canary0/10/25/50/75/100"
    ),
    auto_promote: bool = typer.Option(
        False, "--auto-promote", help="配置 75% 灰度后立即执行 promote"
    ),
) -> None:
    """配置 live 别名的灰度流量"""
    with _guard():
        weight, resolved = _resolve_canary_strategy(percent, strategy)
        if auto_promote and resolved != CanaryStrategy.CANARY75:
            raise InvalidInputError("--auto-promote 只能与 canary75 (75%) 一起使用")

        machine = _build_machine(ctx, "灰度发布")
        PrettyOutput.info(f"灰度比例: {format_percent(weight)}")
        result = machine.canary(weight, auto_promote=auto_promote)

        if result.operation == "canary" and result.changed and weight > 0 and resolved is not None:
            following = successor(resolved)
            if following != resolved:
                result.next_steps.insert(
                    0,
                    f"继续灰度: lad --env {machine.env} canary --strategy {following.value}",
                )
        _print_result(result)


@app.command()
def auto(
    ctx: typer.Context,
    percent: Optional[int] = typer.Option(
        None, "--percent", help="每次增加的灰度百分比 (1-100)，默认取配置 default_percent"
    ),
    wait: Optional[str] = typer.Option(
        None, "--wait", "-w", help="每个阶段的等待时间，如 5m、90s、1h30m"
    ),
) -> None:
    """按步长自动递进灰度，最后执行 promote"""
    with _guard():
        settings = _options(ctx).settings
        step = settings.default_percent if percent is None else percent
        wait_seconds = (
            parse_duration(wait) if wait is not None else settings.default_wait_seconds
        )

        machine = _build_machine(ctx, "自动灰度发布")
        PrettyOutput.info(f"灰度步长: {step}%")
        PrettyOutput.info(f"等待时间: {format_duration(wait_seconds)}")

        result = AutoProgression(machine, sleep=sleep).run(step, wait_seconds)

        PrettyOutput.separator()
        PrettyOutput.success(result.promote.message)
        PrettyOutput.info("发布摘要:")
        PrettyOutput.info(f"  - 原版本: {result.live_version}")
        PrettyOutput.info(f"  - 新版本: {result.latest_version}")
        PrettyOutput.info(f"  - 灰度步骤: {len(result.steps)} 步")
        PrettyOutput.info(f"  - 总等待时间: {format_duration(result.total_wait)}")
        PrettyOutput.info("下一步:")
        PrettyOutput.info(f"  回退到上一版本: lad --env {machine.env} rollback")


@app.command()
def promote(
    ctx: typer.Context,
    skip_canary: bool = typer.Option(
        False, "--skip-canary", help="跳过灰度状态检查，直接切换"
    ),
) -> None:
    """完成灰度发布，将流量完全切换到 latest 版本"""
    with _guard():
        machine = _build_machine(ctx, "完成灰度发布")
        _print_result(machine.promote(skip_canary=skip_canary))


@app.command()
def rollback(
    ctx: typer.Context,
    reason: Optional[str] = typer.Option(None, "--reason", "-r", help="回退原因"),
) -> None:
    """回退到 previous 版本"""
    with _guard():
        machine = _build_machine(ctx, "回退")
        _print_result(machine.rollback(reason=reason))


@app.command()
def switch(
    ctx: typer.Context,
    version: str = typer.Option("", "--version", help="目标版本号"),
) -> None:
    """把 live 直接切换到指定版本"""
    with _guard():
        if not version.strip():
            raise InvalidInputError("必须指定 --version 参数")
        machine = _build_machine(ctx, "切换版本")
        _print_result(machine.switch(version))


def _alias_to_dict(alias: Optional[AliasConfig]) -> Optional[dict]:
    if alias is None:
        return None
    data = {"version": alias.version, "routing": None}
    if alias.routing is not None:
        data["routing"] = {"version": alias.routing[0], "weight": alias.routing[1]}
    return data


def _describe_alias(alias: Optional[AliasConfig]) -> str:
    if alias is None:
        return "未配置"
    if alias.routing is None:
        return f"版本 {alias.version} (100%)"
    canary_version, weight = alias.routing
    return (
        f"版本 {alias.version} ({format_percent(1 - weight)}) + "
        f"版本 {canary_version} ({format_percent(weight)})"
    )


_STATUS_LABELS = {
    StatusClass.STABLE: "稳定 (live == latest)",
    StatusClass.PENDING: "待发布 (latest 有新版本)",
    StatusClass.CANARY_ACTIVE: "灰度中",
    StatusClass.INCOMPLETE: "别名未完整配置",
}


@app.command()
def status(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", "-j", help="以JSON格式输出结果"),
) -> None:
    """查看三个别名的当前状态"""
    with _guard():
        context = _build_context(_options(ctx))
        machine = DeploymentStateMachine(create_client(context.profile), context)
        if not as_json:
            PrettyOutput.section(f"别名状态 - 环境: {context.env}", OutputType.PROGRESS)
            PrettyOutput.info(f"函数: {context.function_name}")
        snapshot = machine.status()
        status_class = snapshot.status_class
        actions = snapshot.recommended_actions(context.env)

    if as_json:
        output = {
            "env": context.env,
            "function": context.function_name,
            "aliases": {
                "live": _alias_to_dict(snapshot.live),
                "previous": _alias_to_dict(snapshot.previous),
                "latest": _alias_to_dict(snapshot.latest),
            },
            "status": status_class.value,
            "actions": actions,
        }
        typer.echo(json.dumps(output, ensure_ascii=False, indent=2))
        return

    PrettyOutput.info(f"live:     {_describe_alias(snapshot.live)}")
    PrettyOutput.info(f"previous: {_describe_alias(snapshot.previous)}")
    PrettyOutput.info(f"latest:   {_describe_alias(snapshot.latest)}")
    PrettyOutput.separator()
    PrettyOutput.info(f"状态: {_STATUS_LABELS[status_class]}")
    PrettyOutput.info("可用操作:")
    for action in actions:
        PrettyOutput.info(f"  {action}")


@app.command()
def strategies() -> None:
    """列出灰度策略表"""
    for item in ALL_STRATEGIES:
        following = successor(item)
        PrettyOutput.info(
            f"{item.value:<10} {format_percent(item.weight):>5}  -> {following.value}"
        )


@app.command("patch")
def patch_command(
    template: str = typer.Option(DEFAULT_TEMPLATE, "--template", "-t", help="模板文件路径"),
    function: str = typer.Option(
        DEFAULT_FUNCTION_RESOURCE, "--function", "-f", help="函数资源名称"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="仅预览，不修改文件"),
    no_backup: bool = typer.Option(False, "--no-backup", help="不创建备份文件"),
) -> None:
    """为 template.yaml 添加版本和别名资源"""
    with _guard():
        patch(
            PatchOptions(
                template_path=template,
                function_name=function,
                dry_run=dry_run,
                no_backup=no_backup,
            )
        )


@app.command("unpatch")
def unpatch_command(
    template: str = typer.Option(DEFAULT_TEMPLATE, "--template", "-t", help="模板文件路径"),
    dry_run: bool = typer.Option(False, "--dry-run", help="仅预览，不修改文件"),
    force: bool = typer.Option(False, "--force", help="移除没有补丁标记的版本/别名资源"),
    no_backup: bool = typer.Option(False, "--no-backup", help="不创建备份文件"),
) -> None:
    """移除 patch 添加的内容"""
    with _guard():
        unpatch(
            UnpatchOptions(
                template_path=template,
                dry_run=dry_run,
                force=force,
                no_backup=no_backup,
            )
        )


def main() -> None:
    """主入口函数"""
    app()


if __name__ == "__main__":
    main()
