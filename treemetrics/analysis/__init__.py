"""Syntax-tree analyses: function complexity and CPD tokens."""
