from __future__ import annotations

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional


class ExitCode(int, Enum):
    OK = 0
    CONFIG_INVALID = 10
    INPUT_INVALID = 20
    BUILD_FAILED = 30
    INTERNAL_ERROR = 50


@dataclass(frozen=True)
class SqlProblem:
    code: str                 # stable machine code, e.g. "SQLC_MISSING_ARGUMENT"
    category: str             # "tokenize" | "arguments" | "clause" | "input" | "config" | "internal"
    message: str              # short human message
    details: Dict[str, Any]   # structured details for debugging
    remediation: Optional[str] = None  # actionable next step


class SqlComposeError(Exception):
    """Base class for every error raised while composing SQL."""

    code = "SQLC_ERROR"
    category = "internal"
    exit_code = ExitCode.INTERNAL_ERROR
    remediation: Optional[str] = None

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
        remediation: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.problem = SqlProblem(
            code=self.code,
            category=self.category,
            message=message,
            details=dict(details or {}),
            remediation=remediation or self.remediation,
        )
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    @property
    def details(self) -> Dict[str, Any]:
        return self.problem.details


class TokenizeError(SqlComposeError):
    code = "SQLC_TOKENIZE_ERROR"
    category = "tokenize"
    exit_code = ExitCode.INPUT_INVALID
    remediation = "Close the quoted literal or block comment that starts at the reported offset."


class MissingArgument(SqlComposeError):
    code = "SQLC_MISSING_ARGUMENT"
    category = "arguments"
    exit_code = ExitCode.BUILD_FAILED
    remediation = "Provide a value for every placeholder referenced by the query text."


class UnusedArgument(SqlComposeError):
    code = "SQLC_UNUSED_ARGUMENT"
    category = "arguments"
    exit_code = ExitCode.BUILD_FAILED
    remediation = "Remove the argument, fix the placeholder spelling, or disable the unused-argument check."


class InvalidPlaceholderUsage(SqlComposeError):
    code = "SQLC_INVALID_PLACEHOLDER"
    category = "arguments"
    exit_code = ExitCode.BUILD_FAILED
    remediation = "Use $N placeholders with list arguments and :name placeholders with named arguments."


class EmptyAssignment(SqlComposeError):
    code = "SQLC_EMPTY_ASSIGNMENT"
    category = "clause"
    exit_code = ExitCode.BUILD_FAILED
    remediation = "Skip the statement when the record provides no fields to assign."


class EmptyOrdPath(SqlComposeError):
    code = "SQLC_EMPTY_ORD_PATH"
    category = "clause"
    exit_code = ExitCode.BUILD_FAILED
    remediation = "Every ordering entry needs at least one column name."


class InvalidInput(SqlComposeError):
    code = "SQLC_INVALID_INPUT"
    category = "input"
    exit_code = ExitCode.INPUT_INVALID


class UnknownField(SqlComposeError):
    code = "SQLC_UNKNOWN_FIELD"
    category = "input"
    exit_code = ExitCode.INPUT_INVALID
    remediation = "Reference only fields declared on the record type."


class ConfigError(SqlComposeError):
    code = "SQLC_CONFIG_INVALID"
    category = "config"
    exit_code = ExitCode.CONFIG_INVALID


def problem_to_dict(p: SqlProblem) -> Dict[str, Any]:
    d = asdict(p)
    if d.get("remediation") is None:
        d.pop("remediation", None)
    return d
