"""Prompt construction for commit, pull request and transcript analysis."""

from typing import Iterable, List, Optional, Sequence

from correlator.models import Commit, ProjectMember, PullRequest, Ticket, Transcript

COMMIT_DIFF_CHARS = 3000
PR_DIFF_CHARS = 5000
TICKET_DESCRIPTION_CHARS = 150

DEFAULT_PROJECT_CONTEXT = "Software project"

_MATCHING_RULES = """Matching Rules:
- Only suggest matches from the provided ticket list
- Confidence 0.8+ = high match, 0.6-0.8 = medium, below 0.6 = don't suggest
- Be conservative with matches - better to suggest nothing than wrong matches"""


def format_ticket_context(tickets: Iterable[Ticket]) -> str:
    lines: List[str] = []
    for ticket in tickets:
        lines.append(f"- {ticket.id}: {ticket.name}")
        if ticket.description:
            lines.append(f"  Description: {ticket.description[:TICKET_DESCRIPTION_CHARS]}")
    return "\n".join(lines) if lines else "No open tickets available"


def build_commit_prompt(
    commit: Commit,
    open_tickets: Sequence[Ticket],
    project_context: Optional[str] = None,
) -> str:
    diff = (commit.diff or "")[:COMMIT_DIFF_CHARS]
    return f"""You are analyzing a git commit for a project management system.

Project Context: {project_context or DEFAULT_PROJECT_CONTEXT}

Commit Message: {commit.message}

Diff (first {COMMIT_DIFF_CHARS} chars):
{diff}

Open Tickets (todo/in_progress):
{format_ticket_context(open_tickets)}

Analyze this commit and provide a JSON response with:
{{
  "summary": "Non-technical explanation of what this change does (1-2 sentences)",
  "impact": ["List of file paths or components affected"],
  "complexity": "low|medium|high",
  "businessValue": "What business value this provides (optional)",
  "suggestedTickets": ["Any follow-up work that might be needed"],
  "codePatterns": ["API endpoints", "database changes", "UI components"],
  "riskLevel": "low|medium|high",
  "fileTypes": ["py", "ts", "sql"],
  "potentialMatches": [
    {{
      "ticketId": "ticket-id-from-list",
      "ticketTitle": "ticket name",
      "confidence": 0.85,
      "reasoning": "Why this commit matches this ticket"
    }}
  ]
}}

{_MATCHING_RULES}
"""


def build_pull_request_prompt(
    pull_request: PullRequest,
    commit_messages: Sequence[str],
    open_tickets: Sequence[Ticket],
    project_context: Optional[str] = None,
) -> str:
    diff = (pull_request.diff or "")[:PR_DIFF_CHARS]
    messages = "\n".join(commit_messages) or f"Initial PR: {pull_request.title}"
    return f"""You are analyzing a GitHub Pull Request for a project management system.

Project Context: {project_context or DEFAULT_PROJECT_CONTEXT}

PR Title: {pull_request.title}
PR Description: {pull_request.body or 'No description provided'}

Commit Messages:
{messages}

Diff (first {PR_DIFF_CHARS} chars):
{diff}

Open Tickets (todo/in_progress):
{format_ticket_context(open_tickets)}

Analyze this PR and provide a JSON response with:
{{
  "summary": "Non-technical explanation of what this PR accomplishes",
  "overallGoal": "The main business objective of this PR",
  "impact": ["List of major components/areas affected"],
  "complexity": "low|medium|high",
  "businessValue": "What business value this provides",
  "testingNeeded": true,
  "deploymentRisk": "low|medium|high",
  "estimatedReviewTime": "5 minutes|30 minutes|2 hours",
  "suggestedTickets": ["Follow-up work needed"],
  "codePatterns": ["Types of changes made"],
  "riskLevel": "low|medium|high",
  "fileTypes": ["File extensions involved"],
  "potentialMatches": [
    {{
      "ticketId": "ticket-id-from-list",
      "ticketTitle": "ticket name",
      "confidence": 0.85,
      "reasoning": "Why this PR matches this ticket"
    }}
  ]
}}

{_MATCHING_RULES}
"""


def build_transcript_prompt(transcript: Transcript, members: Sequence[ProjectMember]) -> str:
    team = "\n".join(
        f"- {member.display_name or member.user_id} ({member.role.value})" for member in members
    ) or "- No members"
    return f"""You are analyzing a meeting transcript to extract actionable tickets for a project management system.

TRANSCRIPT NAME: {transcript.name}

PROJECT TEAM:
{team}

TRANSCRIPT CONTENT:
{transcript.content}

Extract concrete, actionable tickets. For each ticket determine a concise name, a
detailed description, a priority (high/medium/low), the best role to assign it to
(engineer/pm/admin/any) and brief reasoning. Include citations with literal quotes
from the transcript and timestamps if available.

Respond with a JSON object in this exact format:
{{
  "summary": "Brief 2-3 sentence summary of the meeting",
  "keyTopics": ["topic1", "topic2"],
  "actionItems": [
    {{
      "name": "Ticket name",
      "description": "Detailed description of what needs to be done",
      "priority": "high|medium|low",
      "suggestedAssigneeRole": "engineer|pm|admin|any",
      "reasoning": "Why this role and priority",
      "citations": [
        {{
          "text": "Exact quote from transcript that led to this ticket",
          "timestamp": "12:33",
          "context": "Why this quote is relevant"
        }}
      ]
    }}
  ]
}}
"""
