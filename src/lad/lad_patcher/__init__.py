# -*- coding: utf-8 -*-
"""SAM 模板补丁工具"""

from lad.lad_patcher.patch import PatchOptions, PatchResult, patch
from lad.lad_patcher.unpatch import UnpatchOptions, UnpatchResult, unpatch

__all__ = [
    "PatchOptions",
    "PatchResult",
    "patch",
    "UnpatchOptions",
    "UnpatchResult",
    "unpatch",
]
