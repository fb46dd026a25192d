"""Introspection tools exposed over MCP.

Each module holds one ``BaseTool`` subclass covering one area of a
WordPress installation.
"""

from wpboost.tools.acf import Acf
from wpboost.tools.base import BaseTool, ToolDefinition
from wpboost.tools.debug_log import DebugLog
from wpboost.tools.documentation import Documentation
from wpboost.tools.environment import Environment
from wpboost.tools.security import Security
from wpboost.tools.site_info import SiteInfo
from wpboost.tools.templates import TemplateHierarchy
from wpboost.tools.woocommerce import WooCommerce

__all__ = [
    "Acf",
    "BaseTool",
    "DebugLog",
    "Documentation",
    "Environment",
    "Security",
    "SiteInfo",
    "TemplateHierarchy",
    "ToolDefinition",
    "WooCommerce",
]
