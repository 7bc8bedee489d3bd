"""Grammar, parser, AST node definitions and S-expression dump for rusp source."""
