"""
Built-in template rules.

Importing this package registers every built-in rule with the global
registry.
"""

# Import all rules to register them
from templatelint.rules.correctness import bare_strings, shadowed_elements, triple_curlies
from templatelint.rules.stylistic import block_indentation, html_comments, self_closing_void_elements

__all__ = [
    "bare_strings",
    "block_indentation",
    "html_comments",
    "self_closing_void_elements",
    "shadowed_elements",
    "triple_curlies",
]
