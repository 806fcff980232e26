# -*- coding: utf-8 -*-
"""Lambda Alias Deployment (lad)

基于 Lambda 别名（live / previous / latest）的灰度发布工具。
"""

__version__ = "0.1.0"
