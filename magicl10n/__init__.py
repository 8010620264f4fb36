"""magic-l10n: machine translation of module language files through batch translation jobs."""

__version__ = "1.0.0"
