# -*- coding: utf-8 -*-
"""unpatch: 移除 patch 添加的内容并还原被修改的行"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from lad.lad_patcher.patch import DEFAULT_TEMPLATE
from lad.lad_patcher.template import (
    backup_file,
    get_existing_alias_resources,
    get_modified_lines,
    has_alias_resources,
    has_line_modifications,
    has_patch_marker,
    remove_alias_resources,
    remove_patch_marker_content,
    restore_modified_lines,
)
from lad.lad_utils.errors import InvalidInputError
from lad.lad_utils.output import PrettyOutput


@dataclass
class UnpatchOptions:
    """unpatch 命令选项"""

    template_path: str = DEFAULT_TEMPLATE
    dry_run: bool = False
    force: bool = False  # 移除没有补丁标记的资源
    no_backup: bool = False


@dataclass
class UnpatchResult:
    changed: bool
    backup_path: Optional[Path] = None


def unpatch(options: UnpatchOptions, now: Callable[[], datetime] = datetime.now) -> UnpatchResult:
    """执行移除补丁操作"""
    path = options.template_path

    PrettyOutput.info("执行 unpatch 命令")
    PrettyOutput.info(f"模板文件: {path}")
    if options.dry_run:
        PrettyOutput.info("模式: dry-run (仅预览)")
    if options.force:
        PrettyOutput.info("模式: force (强制移除)")

    template = Path(path)
    if not template.exists():
        raise InvalidInputError(f"文件不存在: {path}")
    try:
        content = template.read_text(encoding="utf-8")
    except OSError as e:
        raise InvalidInputError(f"读取模板文件失败: {e}") from e

    marked = has_patch_marker(content)
    alias_resources = has_alias_resources(content)
    line_modifications = has_line_modifications(content)

    if not (marked or alias_resources or line_modifications):
        PrettyOutput.success("模板文件不包含任何补丁内容或版本/别名资源，无需移除")
        return UnpatchResult(changed=False)

    existing = get_existing_alias_resources(content)
    if not marked and alias_resources and not line_modifications:
        PrettyOutput.warning("检测到模板中存在版本/别名资源，但没有补丁标记:")
        for resource in existing:
            PrettyOutput.info(f"  - {resource}")
        if not options.force:
            raise InvalidInputError(
                "需要 --force 参数才能移除没有标记的资源",
                hint=f"使用: lad unpatch --template {path} --force",
            )
        PrettyOutput.warning("使用 --force 模式移除资源")

    PrettyOutput.separator()
    PrettyOutput.info("将移除以下内容:")
    PrettyOutput.separator()

    new_content = content
    if line_modifications:
        modified = get_modified_lines(content)
        PrettyOutput.info(f"- 还原 {len(modified)} 处行级别修改:")
        for line in modified:
            PrettyOutput.info(f"    {line}")
        new_content = restore_modified_lines(new_content)

    if marked:
        PrettyOutput.info("- 补丁标记之间的所有内容")
        new_content = remove_patch_marker_content(new_content)
    elif options.force and alias_resources:
        for resource in existing:
            PrettyOutput.info(f"- 资源: {resource}")
        new_content = remove_alias_resources(new_content, existing)

    if options.dry_run:
        PrettyOutput.separator()
        PrettyOutput.info("Dry-run 完成，未修改任何文件")
        return UnpatchResult(changed=False)

    backup_path = None
    if not options.no_backup:
        try:
            backup_path = backup_file(path, now())
        except OSError as e:
            raise InvalidInputError(f"备份文件失败: {e}") from e
        PrettyOutput.success(f"已备份原文件到: {backup_path}")

    try:
        template.write_text(new_content, encoding="utf-8")
    except OSError as e:
        raise InvalidInputError(f"写入模板文件失败: {e}") from e
    PrettyOutput.success("已移除补丁内容")

    PrettyOutput.separator()
    PrettyOutput.success("Unpatch 完成!")
    PrettyOutput.info(f"重新打补丁: lad patch --template {path}")
    return UnpatchResult(changed=True, backup_path=backup_path)
