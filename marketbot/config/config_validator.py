"""
Startup configuration checks.

Settings._validate() rejects values the bot cannot run with at all. This
module adds softer checks that need a human look before the bot trades:
missing credentials, suspicious endpoints, unusual tuning and duplicate
pairs. ERROR issues stop startup; WARNING issues are only logged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class ValidationSeverity(Enum):
    ERROR = logging.ERROR
    WARNING = logging.WARNING


@dataclass
class ValidationIssue:
    field: str
    message: str
    severity: ValidationSeverity
    value: Any = None
    suggestion: Optional[str] = None

    def render(self) -> str:
        text = f"CONFIG {self.severity.name}: {self.message}"
        if self.suggestion:
            text += f" (suggestion: {self.suggestion})"
        return text


@dataclass
class ValidationResult:
    valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)

    def _with(self, severity: ValidationSeverity) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity is severity]

    def get_errors(self) -> List[ValidationIssue]:
        return self._with(ValidationSeverity.ERROR)

    def get_warnings(self) -> List[ValidationIssue]:
        return self._with(ValidationSeverity.WARNING)


Check = Callable[[Any], List[ValidationIssue]]


class ConfigValidator:
    """
    Validates Settings before the first exchange call.

    Built-in checks run in a fixed order (credentials, endpoints, tuning
    ranges, pairs, risky-but-allowed settings), then any registered checks.
    """

    # Accepted ranges for tuning knobs: field -> (low, high), inclusive
    TUNING_RANGES: Dict[str, Tuple[float, float]] = {
        "http_timeout": (1.0, 120.0),
        "funds_usage": (0.5, 1.0),
        "orders_min": (1, 20),
        "orders_max": (1, 20),
        "price_k": (0.5, 2.0),
    }

    CREDENTIALS: Tuple[str, ...] = ("email", "password")

    ENDPOINTS: Tuple[str, ...] = ("server_url", "wex_url", "bitflip_url")

    def __init__(self) -> None:
        self._extra_checks: List[Check] = []

    def register_validator(self, check: Check) -> None:
        self._extra_checks.append(check)

    def validate(self, cfg) -> ValidationResult:
        checks: List[Check] = [
            self._check_credentials,
            self._check_endpoints,
            self._check_tuning,
            self._check_pairs,
            self._check_risky,
            *self._extra_checks,
        ]
        issues = [issue for check in checks for issue in (check(cfg) or [])]
        valid = all(i.severity is not ValidationSeverity.ERROR for i in issues)
        return ValidationResult(valid=valid, issues=issues)

    def _check_credentials(self, cfg) -> List[ValidationIssue]:
        return [
            ValidationIssue(
                field=name,
                message=f"Bitfex {name} is not set",
                severity=ValidationSeverity.ERROR,
                suggestion=f"Set {name.upper()} in the environment or .env",
            )
            for name in self.CREDENTIALS
            if not str(getattr(cfg, name, None) or "").strip()
        ]

    def _check_endpoints(self, cfg) -> List[ValidationIssue]:
        issues = []
        for name in self.ENDPOINTS:
            url = getattr(cfg, name, "") or ""
            parts = urlparse(url)
            if parts.scheme not in ("http", "https") or not parts.netloc:
                issues.append(ValidationIssue(
                    field=name,
                    message=f"{name} {url!r} is not an absolute http(s) URL",
                    severity=ValidationSeverity.ERROR,
                    value=url,
                ))
            elif parts.scheme == "http":
                issues.append(ValidationIssue(
                    field=name,
                    message=f"{name} {url!r} is plain http",
                    severity=ValidationSeverity.WARNING,
                    value=url,
                    suggestion="Use https for anything carrying credentials",
                ))
        return issues

    def _check_tuning(self, cfg) -> List[ValidationIssue]:
        issues = []
        for name, (low, high) in self.TUNING_RANGES.items():
            value = float(getattr(cfg, name))
            if not low <= value <= high:
                issues.append(ValidationIssue(
                    field=name,
                    message=f"{name}={value} is outside [{low}, {high}]",
                    severity=ValidationSeverity.ERROR,
                    value=value,
                ))
        return issues

    def _check_pairs(self, cfg) -> List[ValidationIssue]:
        seen = set()
        dupes = []
        for pair in cfg.pairs:
            if pair in seen:
                dupes.append(pair)
            seen.add(pair)
        return [
            ValidationIssue(
                field="pairs",
                message=f"{pair} is listed more than once",
                severity=ValidationSeverity.WARNING,
                value=pair,
                suggestion="Duplicates split balances into extra slots",
            )
            for pair in dupes
        ]

    def _check_risky(self, cfg) -> List[ValidationIssue]:
        issues = []
        if cfg.funds_usage < 0.9:
            issues.append(ValidationIssue(
                field="funds_usage",
                message=f"Only {cfg.funds_usage:.0%} of each slot's funds will be quoted",
                severity=ValidationSeverity.WARNING,
                value=cfg.funds_usage,
            ))
        if cfg.dry_run:
            issues.append(ValidationIssue(
                field="dry_run",
                message="Dry run: no orders will be created or cancelled",
                severity=ValidationSeverity.WARNING,
            ))
        return issues


def validate_config(cfg) -> ValidationResult:
    return ConfigValidator().validate(cfg)


def _errors_first(result: ValidationResult) -> Iterator[ValidationIssue]:
    yield from result.get_errors()
    yield from result.get_warnings()


def validate_and_log(cfg, logger_instance=None) -> bool:
    """
    Validate config and log every issue at its severity.

    Returns:
        True if there were no ERROR issues
    """
    log = logger_instance or logger
    result = validate_config(cfg)

    for issue in _errors_first(result):
        log.log(issue.severity.value, issue.render())

    if result.valid:
        log.info("Configuration validation passed")
    else:
        log.error(f"Configuration validation failed with {len(result.get_errors())} error(s)")
    return result.valid
