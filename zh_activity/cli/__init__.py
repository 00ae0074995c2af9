"""CLI package for zh-activity."""
