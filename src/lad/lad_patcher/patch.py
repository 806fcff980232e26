# -*- coding: utf-8 -*-
"""patch: 为 SAM 模板添加版本与别名资源"""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from lad.lad_patcher.template import (
    PATCH_END_MARKER,
    add_description_param,
    backup_file,
    check_description_param,
    check_function_exists,
    detect_http_apis,
    detect_schedule_roles,
    detect_schedules,
    generate_description_param,
    generate_http_api_patch,
    generate_patch_content,
    get_existing_alias_resources,
    has_alias_resources,
    has_patch_marker,
    patch_iam_roles,
    patch_schedules,
    validate_template,
)
from lad.lad_utils.errors import InvalidInputError
from lad.lad_utils.output import OutputType, PrettyOutput

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = "template.yaml"
DEFAULT_FUNCTION_RESOURCE = "Function"


@dataclass
class PatchOptions:
    """patch 命令选项"""

    template_path: str = DEFAULT_TEMPLATE
    function_name: str = DEFAULT_FUNCTION_RESOURCE
    dry_run: bool = False
    no_backup: bool = False


@dataclass
class PatchResult:
    changed: bool
    backup_path: Optional[Path] = None


def _show_block(title: str, body: str) -> None:
    PrettyOutput.separator()
    PrettyOutput.info(title)
    PrettyOutput.separator()
    PrettyOutput.print(body, OutputType.RESULT)


def patch(options: PatchOptions, now: Callable[[], datetime] = datetime.now) -> PatchResult:
    """
    执行补丁操作

    任何校验失败都抛出 InvalidInputError，此时模板文件不会被修改。
    """
    path = options.template_path
    function_name = options.function_name

    PrettyOutput.info("执行 patch 命令")
    PrettyOutput.info(f"模板文件: {path}")
    PrettyOutput.info(f"函数资源: {function_name}")
    if options.dry_run:
        PrettyOutput.info("模式: dry-run (仅预览)")

    content = validate_template(path)
    PrettyOutput.success("模板文件有效")

    if has_patch_marker(content):
        raise InvalidInputError(
            "模板文件已包含补丁标记",
            hint=f"如需重新打补丁，请先执行: lad unpatch --template {path}",
        )

    if has_alias_resources(content):
        PrettyOutput.warning("检测到模板中已存在以下版本/别名资源:")
        for resource in get_existing_alias_resources(content):
            PrettyOutput.info(f"  - {resource}")
        raise InvalidInputError(
            "模板已包含版本/别名资源",
            hint=f"使用 'lad unpatch --template {path}' 移除现有资源后重新打补丁",
        )
    PrettyOutput.success("模板文件未包含版本/别名资源")

    if not check_function_exists(content, function_name):
        raise InvalidInputError(
            f"未找到函数资源: {function_name}",
            hint="请使用 --function 参数指定正确的函数资源名称 "
            "(template.yaml 中 Type: AWS::Serverless::Function 的资源名称)",
        )
    PrettyOutput.success(f"找到函数资源: {function_name}")

    need_description = not check_description_param(content)
    if need_description:
        PrettyOutput.warning("模板缺少 Description 参数，将自动添加")

    http_apis = detect_http_apis(content)
    schedules = detect_schedules(content)
    schedule_roles = detect_schedule_roles(content)
    has_triggers = bool(http_apis or schedules)
    if has_triggers:
        PrettyOutput.info("检测到以下触发器资源:")
        for api in http_apis:
            PrettyOutput.info(f"  - HttpApi: {api}")
        for schedule in schedules:
            PrettyOutput.info(f"  - Schedule: {schedule}")

    # 只为第一个 HttpApi 生成路由
    patch_content = generate_patch_content(function_name)
    if http_apis:
        if len(http_apis) > 1:
            logger.warning(f"检测到多个 HttpApi，只处理 {http_apis[0]}")
        patch_content += generate_http_api_patch(http_apis[0])
    patch_content += "\n" + PATCH_END_MARKER + "\n"

    _show_block("将添加以下内容到 Resources 部分末尾:", patch_content)
    if need_description:
        _show_block("将添加以下内容到 Parameters 部分:", generate_description_param())
    if has_triggers:
        PrettyOutput.separator()
        PrettyOutput.info("将修改以下触发器指向 LiveAlias:")
        PrettyOutput.separator()
        for schedule in schedules:
            PrettyOutput.info(f"  - {schedule}: Target.Arn -> !Ref LiveAlias")
        for role in schedule_roles:
            PrettyOutput.info(f"  - {role}: Resource -> ${{{function_name}.Arn}}:live")

    if options.dry_run:
        PrettyOutput.separator()
        PrettyOutput.info("Dry-run 完成，未修改任何文件")
        return PatchResult(changed=False)

    backup_path = None
    if not options.no_backup:
        try:
            backup_path = backup_file(path, now())
        except OSError as e:
            raise InvalidInputError(f"备份文件失败: {e}") from e
        PrettyOutput.success(f"已备份原文件到: {backup_path}")

    if need_description:
        content = add_description_param(content)
        PrettyOutput.success("已添加 Description 参数")
    if schedules:
        content = patch_schedules(content)
        PrettyOutput.success("已修改 Schedule 触发器指向 LiveAlias")
    if schedule_roles:
        content = patch_iam_roles(content, function_name)
        PrettyOutput.success("已修改 IAM Role 权限指向 :live 别名")

    if not content.endswith("\n"):
        content += "\n"
    content += patch_content
    try:
        Path(path).write_text(content, encoding="utf-8")
    except OSError as e:
        raise InvalidInputError(f"写入模板文件失败: {e}") from e
    PrettyOutput.success("已添加版本和别名资源")

    PrettyOutput.separator()
    PrettyOutput.success("补丁应用完成!")
    PrettyOutput.info("已添加资源:")
    PrettyOutput.info(f"  - {function_name}Version (Lambda 版本)")
    PrettyOutput.info("  - LiveAlias (生产流量别名)")
    PrettyOutput.info("  - PreviousAlias (回退版本别名)")
    PrettyOutput.info("  - LatestAlias (测试版本别名)")
    if http_apis:
        PrettyOutput.info("  - LiveAliasHttpApiPermission (HttpApi 调用权限)")
        PrettyOutput.info("  - HttpApiLiveRoute (HttpApi 路由)")
        PrettyOutput.info("  - HttpApiLiveIntegration (HttpApi 集成)")
    PrettyOutput.info("下一步:")
    PrettyOutput.info("  1. 检查 template.yaml 确认补丁内容正确")
    PrettyOutput.info("  2. 执行 'lad --env test deploy' 部署测试环境")
    PrettyOutput.info(f"如需移除补丁: lad unpatch --template {path}")

    return PatchResult(changed=True, backup_path=backup_path)
