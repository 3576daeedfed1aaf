"""Bundled Jinja2 code templates (``*.tpl``), read by ``PackageLoader``."""
