"""Read-only access to a WordPress installation on disk."""

from wpboost.wordpress.install import WordPressInstall

__all__ = ["WordPressInstall"]
