"""Shared fixtures: a minimal WordPress installation on disk."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from wpboost.config.settings import BoostConfig
from wpboost.wordpress.install import WordPressInstall

WP_CONFIG = """<?php
/** Database settings */
define( 'DB_NAME', 'wordpress' );
define( 'DB_USER', 'wp' );
define( 'DB_HOST', 'localhost:3306' );
define( 'DB_CHARSET', 'utf8mb4' );
define( 'DB_COLLATE', '' );
define( 'DB_PASSWORD', 's3cret' );
define( 'AUTH_KEY', 'put your unique phrase here' );
define( 'MY_API_KEY', 'abc123' );
define( 'MY_FLAG', true );

// define( 'WP_DEBUG', false );
define( 'WP_DEBUG', true );
define( 'WP_DEBUG_LOG', true );
define( 'WP_DEBUG_DISPLAY', false );
define( 'WP_MEMORY_LIMIT', 256 );
define( 'WP_CACHE_TTL', 1.5 );
define( 'WP_HOME', getenv('WP_HOME') );

$table_prefix = 'wpx_';

require_once ABSPATH . 'wp-settings.php';
"""

VERSION_PHP = """<?php
/**
 * WordPress Version
 */
$wp_version = '6.4.2';
$wp_db_version = 56657;
$required_php_version = '7.0.0';
$required_mysql_version = '5.0';
"""

PLUGIN_PHP = """<?php
/**
 * Plugin API
 */

/**
 * Adds a callback function to an action hook.
 *
 * @since 1.2.0
 */
function add_action( $hook_name, $callback, $priority = 10, $accepted_args = 1 ) {
	return add_filter( $hook_name, $callback, $priority, $accepted_args );
}
"""

DEBUG_LOG = """[18-Oct-2026 09:00:00 UTC] PHP Notice:  Undefined variable: foo in /var/www/wp-content/themes/child/functions.php on line 12
[18-Oct-2026 09:01:00 UTC] PHP Warning:  Division by zero in /var/www/wp-content/plugins/akismet/akismet.php on line 40
[18-Oct-2026 09:02:00 UTC] PHP Fatal error:  Uncaught Error: Call to undefined function bar() in /var/www/wp-content/themes/child/functions.php:20
Stack trace:
#0 {main}
  thrown in /var/www/wp-content/themes/child/functions.php on line 20
[18-Oct-2026 09:03:00 UTC] PHP Deprecated:  Function create_function() is deprecated in /var/www/wp-includes/functions.php on line 5
"""


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def wp_root(tmp_path: Path) -> Path:
    root = tmp_path / "wordpress"
    _write(root / "wp-load.php", "<?php\n")
    _write(root / "wp-config.php", WP_CONFIG)
    _write(root / "wp-includes" / "version.php", VERSION_PHP)
    _write(root / "wp-includes" / "plugin.php", PLUGIN_PHP)

    content = root / "wp-content"
    _write(content / "plugins" / "akismet" / "akismet.php", (
        "<?php\n/*\nPlugin Name: Akismet Anti-spam\nVersion: 5.3\n"
        "Author: Automattic\nRequires PHP: 7.2\n*/\n"
    ))
    _write(content / "plugins" / "akismet" / "class.akismet.php", "<?php\nclass Akismet {}\n")
    _write(content / "plugins" / "hello.php", (
        "<?php\n/**\n * Plugin Name: Hello Dolly\n * Version: 1.7.2\n */\n"
    ))
    _write(content / "mu-plugins" / "loader.php", (
        "<?php\n/**\n * Plugin Name: Site Loader\n */\n"
    ))
    _write(content / "object-cache.php", "<?php\n")
    _write(content / "themes" / "twentytwentyfour" / "style.css", (
        "/*\nTheme Name: Twenty Twenty-Four\nVersion: 1.0\nAuthor: the WordPress team\n*/\n"
    ))
    _write(content / "themes" / "child" / "style.css", (
        "/*\nTheme Name: Child Theme\nTemplate: twentytwentyfour\nVersion: 0.1\n*/\n"
    ))
    _write(content / "debug.log", DEBUG_LOG)
    return root


@pytest.fixture
def wp_root_with_plugins(wp_root: Path) -> Path:
    """Adds ACF (with local JSON) and WooCommerce (with theme overrides)."""
    content = wp_root / "wp-content"
    _write(content / "plugins" / "advanced-custom-fields" / "acf.php", (
        "<?php\n/*\nPlugin Name: Advanced Custom Fields\nVersion: 6.2.4\n*/\n"
    ))
    group = {
        "key": "group_book",
        "title": "Book Details",
        "active": True,
        "fields": [
            {"key": "field_isbn", "name": "isbn", "label": "ISBN", "type": "text", "required": 1},
            {
                "key": "field_authors",
                "name": "authors",
                "label": "Authors",
                "type": "repeater",
                "sub_fields": [
                    {"key": "field_author_name", "name": "author_name", "label": "Name", "type": "text"},
                ],
            },
        ],
        "location": [[{"param": "post_type", "operator": "==", "value": "book"}]],
    }
    inactive = {"key": "group_old", "title": "Old Fields", "active": False, "fields": [], "location": []}
    _write(content / "themes" / "child" / "acf-json" / "group_book.json", json.dumps(group))
    _write(content / "themes" / "child" / "acf-json" / "group_old.json", json.dumps(inactive))

    woo = content / "plugins" / "woocommerce"
    _write(woo / "woocommerce.php", (
        "<?php\n/**\n * Plugin Name: WooCommerce\n * Version: 8.4.0\n"
        " * Requires at least: 6.3\n * Requires PHP: 7.4\n */\n"
    ))
    _write(woo / "templates" / "cart" / "cart.php", "<?php\n/**\n * @version 7.9.0\n */\n")
    _write(woo / "templates" / "single-product.php", "<?php\n/**\n * @version 1.6.4\n */\n")
    overrides = content / "themes" / "child" / "woocommerce"
    _write(overrides / "cart" / "cart.php", "<?php\n/**\n * @version 3.8.0\n */\n")
    _write(overrides / "single-product.php", "<?php\n/**\n * @version 1.6.4\n */\n")
    return wp_root


@pytest.fixture
def install(wp_root: Path) -> WordPressInstall:
    return WordPressInstall.locate(wp_root)


@pytest.fixture
def config() -> BoostConfig:
    return BoostConfig()
