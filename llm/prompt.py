"""
Prompt construction for the narrative summarizer.

Each builder wraps already-formatted evidence in a fixed instruction block.
The evidence itself is rendered by the analytics services; nothing here
looks at log records.
"""

from __future__ import annotations

from typing import Dict

COMPARISON_INSTRUCTIONS = """You are LogFlow, a senior site reliability engineer.

TASK: Perform differential log analysis between the HEALTHY and CRASH periods below.

Answer in plain text (no markdown) with these sections:

ROOT CAUSE (Confidence: XX%)
- One line describing the issue and its expected impact

EVIDENCE
1. Exact divergence timestamp (copy it from the logs)
2. Service impact: affected services, latency pattern, error distribution healthy vs crash
3. Silent failures: services or messages that stopped reporting, timing correlations

REMEDIATION
- CRITICAL (immediate): action, reason, expected result
- HIGH (within 1 hour): action, reason, expected result
- MEDIUM (within 24 hours): action, reason, expected result

Rules: use exact timestamps from the logs, prefer concrete commands, and state
data limitations explicitly when confidence is below 70%."""

QUERY_INSTRUCTIONS = """You are LogFlow, an expert SRE assistant.

Answer the user question from the logs only. Use plain text with these sections:

ISSUE:
ROOT CAUSE:
AFFECTED SERVICES:
TIME STARTED:
ACTION REQUIRED:"""

OVERVIEW_INSTRUCTIONS = """You are an expert SRE assistant. Analyze these log statistics and provide:
1. A brief incident summary
2. The most likely root cause
3. Three specific actions to investigate"""


def build_comparison_prompt(evidence: str) -> str:
    """Instructions followed by the healthy/crash evidence bundle."""
    return f"{COMPARISON_INSTRUCTIONS}\n\n{evidence}"


def build_query_prompt(question: str, time_description: str, log_count: int, error_count: int, context: str) -> str:
    return (
        f"{QUERY_INSTRUCTIONS}\n\n"
        f"Context: logs from {time_description} ({log_count} total, {error_count} errors)\n\n"
        f"Logs (newest first):\n{context}\n"
        f"User question: {question}"
    )


def build_overview_prompt(level_counts: Dict[str, int], total: int, top_services: Dict[str, int]) -> str:
    lines = ["Log Statistics:", f"- Total logs: {total}"]
    for level in sorted(level_counts):
        lines.append(f"- {level}: {level_counts[level]}")
    lines.append("")
    lines.append("Top Services:")
    for service, count in top_services.items():
        lines.append(f"- {service}: {count} logs")
    return f"{OVERVIEW_INSTRUCTIONS}\n\n" + "\n".join(lines)
