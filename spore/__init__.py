"""Lexer, parser, printer and macro expander for the Spore language."""

__version__ = "0.1.0"
__all__ = ["ast", "tokens", "lexer", "parser", "printer", "macros", "source"]