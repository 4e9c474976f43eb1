"""Templates: ready-to-use starting points for common memory entries."""

from .base import CategoryMeta, MemoryTemplate, get_template, list_templates, register_template  # noqa: F401

# Import built-ins to trigger registration
from .builtin import BUILTIN_TEMPLATES, CATEGORY_META, get_category_meta  # noqa: F401
