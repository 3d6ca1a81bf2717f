"""
Tree-sitter query patterns for symbol definitions and usages.

Each language has a `definitions` query capturing names as @definition and a
`usages` query capturing referenced names as @usage.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LanguageQuerySet:
    definitions: str
    usages: str


# -----------------------------------------------------------------------------
# TypeScript / TSX
# -----------------------------------------------------------------------------

TYPESCRIPT_DEFINITIONS = """
(function_declaration name: (identifier) @definition)
(class_declaration name: (type_identifier) @definition)
(abstract_class_declaration name: (type_identifier) @definition)
(interface_declaration name: (type_identifier) @definition)
(type_alias_declaration name: (type_identifier) @definition)
(enum_declaration name: (identifier) @definition)
(lexical_declaration (variable_declarator name: (identifier) @definition))
(method_definition name: (property_identifier) @definition)
"""

TYPESCRIPT_USAGES = """
(call_expression function: (identifier) @usage)
(call_expression function: (member_expression property: (property_identifier) @usage))
(new_expression constructor: (identifier) @usage)
(type_identifier) @usage
"""

# -----------------------------------------------------------------------------
# JavaScript (no type-level nodes in this grammar)
# -----------------------------------------------------------------------------

JAVASCRIPT_DEFINITIONS = """
(function_declaration name: (identifier) @definition)
(generator_function_declaration name: (identifier) @definition)
(class_declaration name: (identifier) @definition)
(lexical_declaration (variable_declarator name: (identifier) @definition))
(variable_declaration (variable_declarator name: (identifier) @definition))
(method_definition name: (property_identifier) @definition)
"""

JAVASCRIPT_USAGES = """
(call_expression function: (identifier) @usage)
(call_expression function: (member_expression property: (property_identifier) @usage))
(new_expression constructor: (identifier) @usage)
"""

# -----------------------------------------------------------------------------
# Python
# -----------------------------------------------------------------------------

PYTHON_DEFINITIONS = """
(function_definition name: (identifier) @definition)
(class_definition name: (identifier) @definition)
(assignment left: (identifier) @definition)
"""

PYTHON_USAGES = """
(call function: (identifier) @usage)
(call function: (attribute attribute: (identifier) @usage))
(import_from_statement name: (dotted_name (identifier) @usage))
"""

# -----------------------------------------------------------------------------
# Go
# -----------------------------------------------------------------------------

GO_DEFINITIONS = """
(function_declaration name: (identifier) @definition)
(method_declaration name: (field_identifier) @definition)
(type_spec name: (type_identifier) @definition)
"""

GO_USAGES = """
(call_expression function: (identifier) @usage)
(call_expression function: (selector_expression field: (field_identifier) @usage))
(type_identifier) @usage
"""

# -----------------------------------------------------------------------------
# Rust
# -----------------------------------------------------------------------------

RUST_DEFINITIONS = """
(function_item name: (identifier) @definition)
(struct_item name: (type_identifier) @definition)
(enum_item name: (type_identifier) @definition)
(trait_item name: (type_identifier) @definition)
(impl_item trait: (type_identifier) @definition)
(type_item name: (type_identifier) @definition)
(const_item name: (identifier) @definition)
"""

RUST_USAGES = """
(call_expression function: (identifier) @usage)
(call_expression function: (field_expression field: (field_identifier) @usage))
(type_identifier) @usage
(use_declaration argument: (scoped_identifier name: (identifier) @usage))
"""

# -----------------------------------------------------------------------------
# Java
# -----------------------------------------------------------------------------

JAVA_DEFINITIONS = """
(class_declaration name: (identifier) @definition)
(interface_declaration name: (identifier) @definition)
(enum_declaration name: (identifier) @definition)
(method_declaration name: (identifier) @definition)
"""

JAVA_USAGES = """
(method_invocation name: (identifier) @usage)
(object_creation_expression type: (type_identifier) @usage)
(type_identifier) @usage
"""

# -----------------------------------------------------------------------------
# Ruby
# -----------------------------------------------------------------------------

RUBY_DEFINITIONS = """
(class name: (constant) @definition)
(module name: (constant) @definition)
(method name: (identifier) @definition)
"""

RUBY_USAGES = """
(call method: (identifier) @usage)
(constant) @usage
"""

# -----------------------------------------------------------------------------
# C / C++
# -----------------------------------------------------------------------------

C_DEFINITIONS = """
(function_definition declarator: (function_declarator declarator: (identifier) @definition))
(struct_specifier name: (type_identifier) @definition)
(enum_specifier name: (type_identifier) @definition)
"""

C_USAGES = """
(call_expression function: (identifier) @usage)
(type_identifier) @usage
"""

CPP_DEFINITIONS = """
(function_definition declarator: (function_declarator declarator: (identifier) @definition))
(class_specifier name: (type_identifier) @definition)
(struct_specifier name: (type_identifier) @definition)
(enum_specifier name: (type_identifier) @definition)
"""

CPP_USAGES = """
(call_expression function: (identifier) @usage)
(call_expression function: (field_expression field: (field_identifier) @usage))
(type_identifier) @usage
"""

# -----------------------------------------------------------------------------
# C#
# -----------------------------------------------------------------------------

CSHARP_DEFINITIONS = """
(class_declaration name: (identifier) @definition)
(interface_declaration name: (identifier) @definition)
(method_declaration name: (identifier) @definition)
(struct_declaration name: (identifier) @definition)
"""

CSHARP_USAGES = """
(invocation_expression function: (identifier) @usage)
(invocation_expression function: (member_access_expression name: (identifier) @usage))
(object_creation_expression type: (identifier) @usage)
(variable_declaration type: (identifier) @usage)
"""

# -----------------------------------------------------------------------------
# PHP
# -----------------------------------------------------------------------------

PHP_DEFINITIONS = """
(function_definition name: (name) @definition)
(class_declaration name: (name) @definition)
(interface_declaration name: (name) @definition)
(trait_declaration name: (name) @definition)
(method_declaration name: (name) @definition)
"""

PHP_USAGES = """
(function_call_expression function: (name) @usage)
(member_call_expression name: (name) @usage)
(scoped_call_expression name: (name) @usage)
"""


LANGUAGE_QUERIES: dict[str, LanguageQuerySet] = {
    "typescript": LanguageQuerySet(TYPESCRIPT_DEFINITIONS, TYPESCRIPT_USAGES),
    "tsx": LanguageQuerySet(TYPESCRIPT_DEFINITIONS, TYPESCRIPT_USAGES),
    "javascript": LanguageQuerySet(JAVASCRIPT_DEFINITIONS, JAVASCRIPT_USAGES),
    "python": LanguageQuerySet(PYTHON_DEFINITIONS, PYTHON_USAGES),
    "go": LanguageQuerySet(GO_DEFINITIONS, GO_USAGES),
    "rust": LanguageQuerySet(RUST_DEFINITIONS, RUST_USAGES),
    "java": LanguageQuerySet(JAVA_DEFINITIONS, JAVA_USAGES),
    "ruby": LanguageQuerySet(RUBY_DEFINITIONS, RUBY_USAGES),
    "c": LanguageQuerySet(C_DEFINITIONS, C_USAGES),
    "cpp": LanguageQuerySet(CPP_DEFINITIONS, CPP_USAGES),
    "csharp": LanguageQuerySet(CSHARP_DEFINITIONS, CSHARP_USAGES),
    "php": LanguageQuerySet(PHP_DEFINITIONS, PHP_USAGES),
}
