"""
Turns the raw messages of one walk into severity-annotated findings.

Pending modules have their violations demoted to warnings, ignored modules
report nothing, and configuration problems become synthetic findings.
"""

from typing import Iterable, List, Optional

from templatelint.config import LintConfig
from templatelint.core.findings import Finding, MessageKind, RawMessage, Severity


def missing_rule_finding(rule_name: str, module_id: Optional[str] = None) -> Finding:
    return Finding(
        message=f"Definition for rule '{rule_name}' was not found",
        module_id=module_id,
        severity=Severity.ERROR,
    )


def stale_pending_finding(module_id: str) -> Finding:
    return Finding(
        message=(
            f"Pending module (`{module_id}`) passes all rules. "
            f"Please remove `{module_id}` from pending list."
        ),
        module_id=module_id,
        severity=Severity.ERROR,
    )


def classify(
    raw_messages: Iterable[RawMessage],
    module_id: Optional[str],
    config: LintConfig,
    missing_rules: Iterable[str] = (),
    cwd: Optional[str] = None,
) -> List[Finding]:
    """
    Classify raw messages for one module.

    Findings come out in this order: missing rules and invalid rule
    configurations, then located findings sorted by line and column, then
    the stale pending finding if any.
    """
    if module_id is not None and config.is_ignored(module_id, cwd):
        return []

    pending = config.find_pending(module_id, cwd) if module_id is not None else None

    leading = [missing_rule_finding(name, module_id) for name in missing_rules]

    located: List[Finding] = []
    pending_matched = False

    for raw in raw_messages:
        if raw.kind is MessageKind.CONFIG_ERROR:
            leading.append(Finding(message=raw.message, module_id=module_id, rule=raw.rule))
            continue

        severity = Severity.ERROR
        if pending is not None and (pending.only is None or raw.rule in pending.only):
            severity = Severity.WARNING
            pending_matched = True

        located.append(Finding(
            message=raw.message,
            module_id=module_id,
            line=raw.line,
            column=raw.column,
            source=raw.source,
            rule=raw.rule,
            severity=severity,
        ))

    located.sort(key=lambda f: (f.line or 0, f.column or 0))

    findings = leading + located
    if pending is not None and not pending_matched:
        findings.append(stale_pending_finding(module_id))
    return findings
