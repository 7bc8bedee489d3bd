"""Evaluator component: values, environments, closures, coercion and built-ins.

Evaluates parsed rusp AST nodes against a chain of lexical scopes.
"""
