"""Composable, parameterized SQL from text templates with $N / :name placeholders."""

from .args import ArgSource, DictArgs, ListArgs, NoArgs, RecordArgs, to_arg_source
from .builder import EMPTY_LIST, build
from .clauses import Cols, ColsDeep, SelectCols, SelectColsDeep, StructAssign, StructInsert, StructValues
from .config import BuilderConfig, get_config, load_builder_config, set_config
from .errors import (
    ConfigError,
    EmptyAssignment,
    EmptyOrdPath,
    ExitCode,
    InvalidInput,
    InvalidPlaceholderUsage,
    MissingArgument,
    SqlComposeError,
    SqlProblem,
    TokenizeError,
    UnknownField,
    UnusedArgument,
)
from .expr import (
    AliasedPath,
    And,
    Ands,
    Assign,
    Call,
    Comma,
    DeleteFrom,
    DictQ,
    Eq,
    EqAny,
    Exprs,
    From,
    Ident,
    InsertInto,
    IsNotNull,
    IsNull,
    ListQ,
    Neq,
    NeqAny,
    Not,
    Null,
    Or,
    OrderBy,
    Ors,
    Parens,
    Path,
    Prefix,
    RecordQ,
    Returning,
    ReturningStar,
    RowNumberOver,
    Select,
    SelectStar,
    Seq,
    Set,
    Star,
    Str,
    StrQ,
    SubQ,
    Update,
    Where,
)
from .jel import Jel
from .ordering import Dir, Nulls, Ord, Ords, OrdsParser, parse_ords
from .query import Expr, Query, reify, render_debug
from .records import Partial, column, record_dict, record_fields
from .template import Template, TemplateCache, default_cache, preparse
from .tokenizer import tokenize
from .types import Arg, Placeholder, Token, TokenKind

__version__ = "0.1.0"

__all__ = [
    "ArgSource",
    "DictArgs",
    "ListArgs",
    "NoArgs",
    "RecordArgs",
    "to_arg_source",
    "EMPTY_LIST",
    "build",
    "Cols",
    "ColsDeep",
    "SelectCols",
    "SelectColsDeep",
    "StructAssign",
    "StructInsert",
    "StructValues",
    "BuilderConfig",
    "get_config",
    "load_builder_config",
    "set_config",
    "ConfigError",
    "EmptyAssignment",
    "EmptyOrdPath",
    "ExitCode",
    "InvalidInput",
    "InvalidPlaceholderUsage",
    "MissingArgument",
    "SqlComposeError",
    "SqlProblem",
    "TokenizeError",
    "UnknownField",
    "UnusedArgument",
    "AliasedPath",
    "And",
    "Ands",
    "Assign",
    "Call",
    "Comma",
    "DeleteFrom",
    "DictQ",
    "Eq",
    "EqAny",
    "Exprs",
    "From",
    "Ident",
    "InsertInto",
    "IsNotNull",
    "IsNull",
    "ListQ",
    "Neq",
    "NeqAny",
    "Not",
    "Null",
    "Or",
    "OrderBy",
    "Ors",
    "Parens",
    "Path",
    "Prefix",
    "RecordQ",
    "Returning",
    "ReturningStar",
    "RowNumberOver",
    "Select",
    "SelectStar",
    "Seq",
    "Set",
    "Star",
    "Str",
    "StrQ",
    "SubQ",
    "Update",
    "Where",
    "Jel",
    "Dir",
    "Nulls",
    "Ord",
    "Ords",
    "OrdsParser",
    "parse_ords",
    "Expr",
    "Query",
    "reify",
    "render_debug",
    "Partial",
    "column",
    "record_dict",
    "record_fields",
    "Template",
    "TemplateCache",
    "default_cache",
    "preparse",
    "tokenize",
    "Arg",
    "Placeholder",
    "Token",
    "TokenKind",
    "__version__",
]
