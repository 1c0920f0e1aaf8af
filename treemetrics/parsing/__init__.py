"""tree-sitter front-end and the read-only tree model."""
