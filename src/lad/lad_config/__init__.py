"""SAM 配置读取"""

from lad.lad_config.samconfig import (
    SAMConfig,
    load_samconfig,
    resolve_function_name,
    resolve_profile,
)

__all__ = ["SAMConfig", "load_samconfig", "resolve_function_name", "resolve_profile"]
