"""wordpress-boost: an MCP server that gives AI agents context about a
WordPress installation.

The server speaks the Model Context Protocol (JSON-RPC 2.0 over stdio)
and exposes read-only introspection tools: site and plugin inventory,
debug log analysis, developer documentation lookups, and plugin-specific
tools for ACF and WooCommerce when those plugins are installed.

Usage::

    wp-boost mcp --path /var/www/html
"""

__version__ = "1.0.0"
