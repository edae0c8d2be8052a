"""Console formatting for reconciliation summaries and market checks."""

from __future__ import annotations

import json

from polyredeem.models.redemption import BatchSummary, MarketCheck, RedemptionOutcome

_RULE = "=" * 50


def _label(result: RedemptionOutcome, width: int = 50) -> str:
    if result.market_title:
        title = result.market_title
        return f'"{title[:width]}..."' if len(title) > width else f'"{title}"'
    return result.condition_id[:20] + "..."


def format_summary(summary: BatchSummary) -> str:
    """Human-readable summary of one pass."""
    heading = "API REDEMPTION SUMMARY" if summary.source == "listing" else "REDEMPTION SUMMARY"
    lines = [
        "",
        _RULE,
        f"  {heading}",
        _RULE,
        f"  {'Total markets checked':<32} {summary.total:>6}",
        f"  {'Markets with positions':<32} {summary.with_positions:>6}",
        f"  {'Resolved markets':<32} {summary.resolved:>6}",
        f"  {'Markets with winning tokens':<32} {summary.with_winning_tokens:>6}",
    ]
    if summary.dry_run:
        lines.append(f"  {'Would redeem':<32} {summary.with_winning_tokens:>6}")
    else:
        lines.append(f"  {'Successfully redeemed':<32} {summary.redeemed:>6}")
        lines.append(f"  {'Failed':<32} {summary.failed:>6}")

    detailed = [r for r in summary.results if r.has_winning_tokens or (r.is_resolved and r.error)]
    if detailed:
        lines.append("")
        lines.append("  Detailed results:")
        for r in detailed:
            if r.redeemed:
                tx = r.receipt.tx_hash if r.receipt else ""
                lines.append(f"    [redeemed]    {_label(r)} tx={tx}")
            elif r.would_redeem:
                lines.append(f"    [would redeem] {_label(r)}")
            elif not r.has_winning_tokens:
                lines.append(f"    [error]       {_label(r)} - {r.error}")
            else:
                lines.append(f"    [failed]      {_label(r)} - {r.error or 'Unknown error'}")
    elif not summary.dry_run:
        lines.append("")
        lines.append("  No resolved markets with winning tokens found.")

    lines.append(_RULE)
    return "\n".join(lines)


def format_check(check: MarketCheck) -> str:
    """Human-readable diagnostic for a single market."""
    status = check.status
    outcome = check.outcome
    lines = [
        "",
        "=== Market Status ===",
        f"  Condition ID: {status.condition_id}",
    ]
    if status.market_title:
        lines.append(f"  Market: {status.market_title}")

    if not status.is_resolved:
        lines.append(f"  NOT resolved ({status.state.value})")
        lines.append(f"  Reason: {status.reason}")
        return "\n".join(lines)

    lines.append("  RESOLVED")
    lines.append(f"  Outcome: {status.outcome or 'N/A'}")
    lines.append(f"  Winning outcomes: {', '.join(str(i) for i in status.winning_indices)}")
    lines.append(f"  Reason: {status.reason}")

    if check.balances is not None and check.balances.error is None:
        if check.balances.balances:
            lines.append("  Your token holdings:")
            for index, amount in sorted(check.balances.balances.items()):
                tag = "WINNER" if index in status.winning_indices else "loser"
                lines.append(f"    Outcome {index}: {amount} ({tag})")
        else:
            lines.append("  You hold no tokens for this market.")
    elif check.balances is not None:
        lines.append(f"  Balance lookup failed: {check.balances.error}")

    if outcome.redeemed and outcome.receipt is not None:
        lines.append(f"  Redeemed. Transaction: {outcome.receipt.tx_hash}")
    elif outcome.would_redeem:
        lines.append("  You hold winning tokens. Re-run with --redeem to claim them.")
    elif outcome.has_winning_tokens:
        lines.append(f"  Redemption failed: {outcome.error}")
    elif check.balances is not None and check.balances.error is None:
        lines.append("  You don't hold any winning tokens for this market.")
    return "\n".join(lines)


def summary_to_json(summary: BatchSummary) -> str:
    return json.dumps(summary.model_dump(mode="json"), indent=2)
