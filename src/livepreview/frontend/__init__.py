"""
Frontend: lexing and source transformation of project files.
"""

from .lexer import Lexer, tokenize
from .tokens import Token, TokenKind, TokenList
from .imports import ImportBinding, ImportParser, ModuleDeclaration, get_import_parser, parse_declarations
from .typescript import TypeEraser
from .jsx import JSXLowering, clean_jsx_text
from .transformer import SourceTransformer, SpecifierSlot, TransformResult

__all__ = [
    'Lexer',
    'tokenize',
    'Token',
    'TokenKind',
    'TokenList',
    'ImportBinding',
    'ImportParser',
    'ModuleDeclaration',
    'get_import_parser',
    'parse_declarations',
    'TypeEraser',
    'JSXLowering',
    'clean_jsx_text',
    'SourceTransformer',
    'SpecifierSlot',
    'TransformResult',
]
