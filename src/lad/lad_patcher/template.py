# -*- coding: utf-8 -*-
"""SAM 模板文本处理

检测函数/触发器资源，生成版本与别名资源，并在修改行时保留原始行，
便于 unpatch 还原。所有处理都基于文本，不解析 YAML（模板中含 !Ref 等自定义标签）。
"""

import re
import shutil
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from lad.lad_utils.errors import InvalidInputError

PATCH_START_MARKER = "# >>>>>> DEPLOY_SCRIPT_PATCH_START <<<<<<"
PATCH_END_MARKER = "# >>>>>> DEPLOY_SCRIPT_PATCH_END <<<<<<"
# 被修改的行以注释形式保留原始内容
LINE_MODIFY_MARKER = "# <<< LAD_ORIGINAL:"
LINE_MODIFY_END_MARKER = ">>>"

_RESOURCES_RE = re.compile(r"^Resources:", re.M)
_PARAMETERS_RE = re.compile(r"^Parameters:[ \t]*\n", re.M)
_DESCRIPTION_PARAM_RE = re.compile(r"^  Description:", re.M)
_LIVE_ALIAS_RE = re.compile(r"^  LiveAlias:", re.M)
_MODIFIED_LINE_RE = re.compile(
    re.escape(LINE_MODIFY_MARKER) + r" (.+?) " + re.escape(LINE_MODIFY_END_MARKER)
)
_RESTORE_RE = re.compile(
    r"^([ \t]*)"
    + re.escape(LINE_MODIFY_MARKER)
    + r" (.+?) "
    + re.escape(LINE_MODIFY_END_MARKER)
    + r"\n[ \t]*.+",
    re.M,
)
_SCHEDULE_ARN_RE = re.compile(r"^([ \t]+)(Arn: !GetAtt [A-Za-z0-9]+\.Arn)", re.M)


def _typed_resources(content: str, resource_type: str) -> List[str]:
    """返回指定类型的资源名称（按出现顺序）"""
    pattern = re.compile(
        r"^  ([A-Za-z0-9]+):[ \t]*\n[ \t]+Type:[ \t]*" + re.escape(resource_type) + r"\b",
        re.M,
    )
    return pattern.findall(content)


def resource_block(content: str, name: str) -> Optional[str]:
    """返回资源定义文本（从资源名到下一个同级资源或顶层键）"""
    header = re.compile(r"^  " + re.escape(name) + r":[ \t]*\n", re.M)
    match = header.search(content)
    if match is None:
        return None
    next_key = re.compile(r"^(?:  )?[^\s#]", re.M).search(content, match.end())
    end = next_key.start() if next_key else len(content)
    return content[match.start():end]


def validate_template(path: Union[str, Path]) -> str:
    """
    验证模板文件并返回其内容

    检查: 文件存在、包含 AWS::Serverless、包含 Resources
    """
    template = Path(path)
    if not template.exists():
        raise InvalidInputError(f"文件不存在: {path}")

    try:
        content = template.read_text(encoding="utf-8")
    except OSError as e:
        raise InvalidInputError(f"无法读取文件: {e}") from e

    if "AWS::Serverless" not in content:
        raise InvalidInputError(f"不是有效的 SAM 模板文件: {path}")
    if not _RESOURCES_RE.search(content):
        raise InvalidInputError(f"模板文件缺少 Resources 部分: {path}")
    return content


def has_patch_marker(content: str) -> bool:
    return PATCH_START_MARKER in content


def has_alias_resources(content: str) -> bool:
    """检查是否存在版本/别名资源"""
    return bool(
        _LIVE_ALIAS_RE.search(content)
        or "Type: AWS::Lambda::Alias" in content
        or "Type: AWS::Lambda::Version" in content
    )


def get_existing_alias_resources(content: str) -> List[str]:
    """获取已存在的版本和别名资源列表"""
    return _typed_resources(content, "AWS::Lambda::Version") + _typed_resources(
        content, "AWS::Lambda::Alias"
    )


def check_function_exists(content: str, function_name: str) -> bool:
    """检查函数资源是否存在"""
    block = resource_block(content, function_name)
    if block is None:
        return False
    return re.search(r"^[ \t]+Type:[ \t]*\S*Function\b", block, re.M) is not None


def check_description_param(content: str) -> bool:
    return _DESCRIPTION_PARAM_RE.search(content) is not None


def detect_http_apis(content: str) -> List[str]:
    return _typed_resources(content, "AWS::Serverless::HttpApi")


def detect_schedules(content: str) -> List[str]:
    return _typed_resources(content, "AWS::Scheduler::Schedule")


def detect_schedule_roles(content: str) -> List[str]:
    """检测包含 lambda:InvokeFunction 权限的 IAM Role"""
    roles = []
    for role in _typed_resources(content, "AWS::IAM::Role"):
        block = resource_block(content, role) or ""
        if "lambda:InvokeFunction" in block:
            roles.append(role)
    return roles


def generate_patch_content(function_name: str) -> str:
    """生成版本与三个别名资源"""
    aliases = "".join(
        f"""
  # {comment}
  {resource}:
    Type: AWS::Lambda::Alias
    Properties:
      FunctionName: !Ref {function_name}
      FunctionVersion: !GetAtt {function_name}Version.Version
      Name: {alias}
"""
        for resource, alias, comment in (
            ("LiveAlias", "live", "Live 别名 - 生产流量"),
            ("PreviousAlias", "previous", "Previous 别名 - 回退版本"),
            ("LatestAlias", "latest", "Latest 别名 - 测试版本"),
        )
    )
    return f"""
{PATCH_START_MARKER}
# 以下资源由 lad patch 命令自动生成
# 请勿手动修改此区域内容
# 移除请使用: lad unpatch

  # Lambda Version - 版本发布配置
  {function_name}Version:
    Type: AWS::Lambda::Version
    Properties:
      FunctionName: !Ref {function_name}
      Description: !Ref Description
{aliases}"""


def generate_description_param() -> str:
    return """  Description:
    Type: String
    Default: Serverless Function Description
    Description: Description for the Lambda function"""


def generate_http_api_patch(api_name: str) -> str:
    """生成 HttpApi 指向 LiveAlias 的权限、路由和集成资源"""
    return f"""
  # LiveAlias 的 HttpApi 调用权限
  LiveAliasHttpApiPermission:
    Type: AWS::Lambda::Permission
    Properties:
      FunctionName: !Ref LiveAlias
      Action: lambda:InvokeFunction
      Principal: apigateway.amazonaws.com
      SourceArn: !Sub "arn:aws:execute-api:${{AWS::Region}}:${{AWS::AccountId}}:${{{api_name}}}/*"

  # HttpApi 路由到 LiveAlias
  HttpApiLiveRoute:
    Type: AWS::ApiGatewayV2::Route
    Properties:
      ApiId: !Ref {api_name}
      RouteKey: "$default"
      Target: !Sub "integrations/${{HttpApiLiveIntegration}}"

  # HttpApi 集成到 LiveAlias
  HttpApiLiveIntegration:
    Type: AWS::ApiGatewayV2::Integration
    Properties:
      ApiId: !Ref {api_name}
      IntegrationType: AWS_PROXY
      IntegrationUri: !Ref LiveAlias
      PayloadFormatVersion: "2.0"
"""


def add_description_param(content: str) -> str:
    """在 Parameters 部分添加 Description 参数，没有 Parameters 时在 Resources 前添加"""
    param = generate_description_param()
    if _PARAMETERS_RE.search(content):
        return _PARAMETERS_RE.sub(lambda _: "Parameters:\n" + param + "\n", content, count=1)
    if _RESOURCES_RE.search(content):
        return _RESOURCES_RE.sub(
            lambda _: "Parameters:\n" + param + "\n\nResources:", content, count=1
        )
    return content


def _modified_line(indent: str, original: str, replacement: str) -> str:
    return (
        f"{indent}{LINE_MODIFY_MARKER} {original} {LINE_MODIFY_END_MARKER}\n"
        f"{indent}{replacement}"
    )


def patch_schedules(content: str) -> str:
    """把 Schedule 的 Target.Arn 指向 LiveAlias（不影响 RoleArn）"""
    return _SCHEDULE_ARN_RE.sub(
        lambda m: _modified_line(m.group(1), m.group(2), "Arn: !Ref LiveAlias"),
        content,
    )


def patch_iam_roles(content: str, function_name: str) -> str:
    """把 IAM Role 中函数的 Resource 改为 :live 别名"""
    name = re.escape(function_name)
    replacement = f'Resource: !Sub "${{{function_name}.Arn}}:live"'

    get_att = re.compile(r"^([ \t]+)(Resource: !GetAtt " + name + r"\.Arn)[ \t]*$", re.M)
    content = get_att.sub(
        lambda m: _modified_line(m.group(1), m.group(2), replacement), content
    )

    # 已经是 !Sub 格式但没有 :live
    sub = re.compile(r'^([ \t]+)(Resource: !Sub "\$\{' + name + r'\.Arn\}")[ \t]*$', re.M)
    return sub.sub(lambda m: _modified_line(m.group(1), m.group(2), replacement), content)


def has_line_modifications(content: str) -> bool:
    return LINE_MODIFY_MARKER in content


def get_modified_lines(content: str) -> List[str]:
    """获取所有被修改的原始行"""
    return _MODIFIED_LINE_RE.findall(content)


def restore_modified_lines(content: str) -> str:
    """删除注释行和新行，恢复原始行"""
    return _RESTORE_RE.sub(lambda m: m.group(1) + m.group(2), content)


def remove_patch_marker_content(content: str) -> str:
    """移除标记之间的内容（包括标记所在行）"""
    start = content.find(PATCH_START_MARKER)
    end = content.find(PATCH_END_MARKER)
    if start == -1 or end == -1:
        return content

    line_start = content.rfind("\n", 0, start) + 1
    # patch 在标记前插入的空行
    if content[max(line_start - 2, 0):line_start] == "\n\n":
        line_start -= 1
    line_end = content.find("\n", end + len(PATCH_END_MARKER))
    line_end = len(content) if line_end == -1 else line_end + 1
    return content[:line_start] + content[line_end:]


def remove_alias_resources(content: str, resources: List[str]) -> str:
    """移除版本/别名资源定义"""
    for name in resources:
        pattern = re.compile(r"^  " + re.escape(name) + r":[ \t]*\n(?:    .*\n)*", re.M)
        content = pattern.sub("", content)
    return content


def backup_file(path: Union[str, Path], now: Optional[datetime] = None) -> Path:
    """
    备份文件，返回备份文件路径

    格式: {path}.bak.{timestamp}
    """
    timestamp = (now or datetime.now()).strftime("%Y%m%d%H%M%S")
    backup_path = Path(f"{path}.bak.{timestamp}")
    shutil.copyfile(path, backup_path)
    return backup_path
